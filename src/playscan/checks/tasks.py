"""Checks on individual tasks and handlers."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from playscan.checks.base import as_tags, is_templated, is_true, iter_strings, task_label
from playscan.checks.modules import (
    BUILTIN_MODULES,
    DEPRECATED_MODULES,
    DEPRECATED_TASK_KEYS,
    is_builtin,
)

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext, Scope
    from playscan.model.nodes import Play, Task

_LOOP_KEYS_RE = re.compile(r"^(loop|with_\w+)$")
_FACT_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_BOOL_COMPARE_RE = re.compile(
    r"(==|!=)\s*(?:(?:true|false|yes|no)\b|'(?:yes|no|true|false)'|\"(?:yes|no|true|false)\")",
    re.IGNORECASE,
)
_EMPTY_COMPARE_RE = re.compile(r"(==|!=)\s*(''|\"\")")
_JINJA_SPACING_RE = re.compile(r"{{(?![\s-])|(?<![\s-])}}")


def _conditions(task: Task) -> list[str]:
    when = task.attributes.get("when")
    if isinstance(when, list):
        return [str(item) for item in when]
    if when is None or isinstance(when, bool):
        return []
    return [str(when)]


class TaskHasNameCheck:
    """Named tasks make playbook output readable and failures easy to locate."""

    key = "task-has-name"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if not task.name or not task.name.strip():
            ctx.report("Add a 'name' to this task.", task.line)


class TaskNameFirstCheck:
    """Put ``name`` as the first key of a task so that it reads like a title."""

    key = "task-name-first"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        keys = list(task.attributes)
        if "name" in keys and keys[0] != "name":
            ctx.report("Move 'name' to be the first key of this task.", task.line_of("name"))


class TaskNameMinCharsCheck:
    """Task names should be descriptive."""

    key = "task-name-min-chars"

    def __init__(self, min_length: int = 5) -> None:
        self.min_length = min_length

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        name = task.name
        if name is not None and len(name.strip()) < self.min_length:
            ctx.report(
                f"Use a more descriptive task name (at least {self.min_length} characters).",
                task.line_of("name"),
            )


class FullModuleNameCheck:
    """Use fully qualified collection names (FQCN) for modules to avoid ambiguity."""

    key = "full-module-name"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        module = task.module
        if module is None or "." in module:
            return
        key = task.module_key or ""
        if module in BUILTIN_MODULES:
            ctx.report(f"Use 'ansible.builtin.{module}' instead of '{module}'.", task.line_of(key))
        else:
            ctx.report(
                f"Use the fully qualified collection name for module '{module}'.",
                task.line_of(key),
            )

    visit_handler = visit_task


class BuiltinModulesOnlyCheck:
    """Restrict playbooks to ``ansible.builtin`` modules so they run without extra collections."""

    key = "builtin-modules-only"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        module = task.module
        if module is not None and not is_builtin(module):
            ctx.report(
                f"Replace module '{module}' with an ansible.builtin module.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class DelegateToLocalhostCheck:
    """``local_action`` is a legacy shorthand; use ``delegate_to: localhost``."""

    key = "delegate-to-localhost"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if "local_action" in task.attributes:
            ctx.report(
                "Replace 'local_action' with 'delegate_to: localhost'.",
                task.line_of("local_action"),
            )

    visit_handler = visit_task


class ReplaceDeprecatedModuleCheck:
    """Deprecated modules disappear in future releases."""

    key = "replace-deprecated-module"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        module = task.module
        if module is None:
            return
        name = module.removeprefix("ansible.builtin.").removeprefix("ansible.legacy.")
        replacement = DEPRECATED_MODULES.get(name)
        if replacement is not None:
            ctx.report(
                f"Replace deprecated module '{module}' with {replacement}.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class ReplaceDeprecatedParamCheck:
    """Deprecated task keywords are ignored or rejected by recent Ansible versions."""

    key = "replace-deprecated-param"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        for keyword, replacement in DEPRECATED_TASK_KEYS.items():
            if keyword in task.attributes:
                ctx.report(
                    f"Replace deprecated keyword '{keyword}' with '{replacement}'.",
                    task.line_of(keyword),
                )

    visit_handler = visit_task


class ImportVersusIncludeCheck:
    """Static includes are better expressed as imports, which are resolved at parse time."""

    key = "import-versus-include"

    _DYNAMIC = {"include_tasks": "import_tasks", "include_role": "import_role"}

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        module = task.short_module
        if module is None or module not in self._DYNAMIC:
            return
        if any(_LOOP_KEYS_RE.match(key) for key in task.attributes):
            return
        args = task.module_args
        target = args.get("_raw_params") or args.get("file") or args.get("name")
        if isinstance(target, str) and target and not is_templated(target):
            ctx.report(
                f"Use '{self._DYNAMIC[module]}' for this static {module}.",
                task.line_of(task.module_key or ""),
            )


class ExplicitErrorHandlingCheck:
    """``ignore_errors`` hides failures; use ``failed_when`` or block/rescue instead."""

    key = "explicit-error-handling"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if is_true(task.attributes.get("ignore_errors")):
            ctx.report(
                "Replace 'ignore_errors' with 'failed_when' or a block with 'rescue'.",
                task.line_of("ignore_errors"),
            )

    visit_handler = visit_task


class LimitTaskAttributesCheck:
    """Tasks with too many keywords are hard to read."""

    key = "limit-task-attributes"

    def __init__(self, max_attributes: int = 12) -> None:
        self.max_attributes = max_attributes

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if len(task.attributes) > self.max_attributes:
            ctx.report(
                f"Simplify this task: {len(task.attributes)} keys, "
                f"maximum allowed is {self.max_attributes}.",
                task.line,
            )


class WhenBareVariableCheck:
    """``when`` is already a Jinja expression; wrapping it in ``{{ }}`` is redundant."""

    key = "when-bare-variable"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if any("{{" in condition for condition in _conditions(task)):
            ctx.report(
                "Remove the '{{ }}' delimiters from this 'when' condition.",
                task.line_of("when"),
            )

    visit_handler = visit_task


class AvoidLiteralBoolCompareCheck:
    """Compare booleans by truthiness, not against literal ``true``/``yes``."""

    key = "avoid-literal-bool-compare"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if any(_BOOL_COMPARE_RE.search(condition) for condition in _conditions(task)):
            ctx.report(
                "Use 'when: var' or 'when: not var' instead of comparing with a literal boolean.",
                task.line_of("when"),
            )

    visit_handler = visit_task


class CheckLengthNotEmptyCheck:
    """Test emptiness with ``length`` instead of comparing to an empty string."""

    key = "check-length-not-empty"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if any(_EMPTY_COMPARE_RE.search(condition) for condition in _conditions(task)):
            ctx.report(
                "Use 'var | length > 0' or 'var | length == 0' instead of comparing with ''.",
                task.line_of("when"),
            )

    visit_handler = visit_task


class JinjaFormatCheck:
    """Put one space inside Jinja delimiters: ``{{ var }}``."""

    key = "jinja-format"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        for value in iter_strings(task.attributes):
            if "{{" in value and _JINJA_SPACING_RE.search(value):
                ctx.report("Add spaces inside the Jinja braces: '{{ var }}'.", task.line)
                return

    visit_handler = visit_task


class PrefixLoopVarCheck:
    """Loop variables inside roles should carry the role name as prefix to avoid collisions."""

    key = "prefix-loop-var"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        role = ctx.file.role_name
        if role is None or not any(_LOOP_KEYS_RE.match(key) for key in task.attributes):
            return
        prefix = re.sub(r"[^a-z0-9_]", "_", role.lower()) + "_"
        loop_control = task.attributes.get("loop_control")
        loop_var = loop_control.get("loop_var") if isinstance(loop_control, dict) else None
        if not isinstance(loop_var, str) or not loop_var.startswith(prefix):
            ctx.report(
                f"Set 'loop_control.loop_var' to a name starting with '{prefix}'.",
                task.line,
            )


class FactNameFormatCheck:
    """Facts set with ``set_fact`` should be lowercase snake_case."""

    key = "fact-name-format"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module != "set_fact":
            return
        for name in task.module_args:
            if name in ("cacheable", "_raw_params"):
                continue
            if not _FACT_NAME_RE.match(str(name)):
                ctx.report(
                    f"Rename fact '{name}' to match {_FACT_NAME_RE.pattern}.",
                    task.line_of(task.module_key or ""),
                )


class HandlerHasNameCheck:
    """Handlers are notified by name; every handler needs one."""

    key = "handler-has-name"

    def visit_handler(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if not task.name:
            ctx.report("Add a 'name' to this handler.", task.line)


class HandlerForNotifyCheck:
    """Notifying a handler that the play does not define fails at run time."""

    key = "handler-for-notify"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        play = scope.play
        if play is None or play.implicit or play.roles:
            return
        notify = task.attributes.get("notify")
        names = [notify] if isinstance(notify, str) else notify if isinstance(notify, list) else []
        defined = play.handler_names()
        for name in names:
            if is_templated(name):
                continue
            if str(name) not in defined:
                ctx.report(
                    f"Define a handler named '{name}' or fix this notification.",
                    task.line_of("notify"),
                )


class BecomeNonRootUserCheck:
    """Escalating to ``root`` explicitly should be replaced by a dedicated service account."""

    key = "become-non-root-user"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        if str(play.attributes.get("become_user", "")).strip() == "root":
            ctx.report(
                "Use a non-root 'become_user' with only the privileges it needs.",
                play.line_of("become_user"),
            )

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if str(task.attributes.get("become_user", "")).strip() == "root":
            ctx.report(
                f"Use a non-root 'become_user' for task {task_label(task)}.",
                task.line_of("become_user"),
            )

    visit_handler = visit_task


class RunOnceDocumentedCheck:
    """``run_once`` tasks should be tagged so they can be targeted or skipped.

    Tags inherited from the enclosing play and blocks count.
    """

    key = "run-once-documented"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if not is_true(task.attributes.get("run_once")):
            return
        if scope.tags or as_tags(task.attributes.get("tags")):
            return
        ctx.report(
            f"Tag the run_once task {task_label(task)}, or a block or play around it.",
            task.line_of("run_once"),
        )

    visit_handler = visit_task
