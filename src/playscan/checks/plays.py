"""Checks on plays and blocks."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from playscan.checks.base import is_templated, is_true
from playscan.model.nodes import Task

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext, Scope
    from playscan.model.nodes import Block, Play

_VARIABLE_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")
_SECRET_NAME_RE = re.compile(r"(pass(word|wd)?|secret|token|api_?key|private_?key)", re.IGNORECASE)


def _is_vaulted(value: object) -> bool:
    return isinstance(value, str) and value.lstrip().startswith("$ANSIBLE_VAULT")


class PlayHasTagsCheck:
    """Tag plays so that parts of a playbook can be run selectively."""

    key = "play-has-tags"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        if play.implicit or play.is_import:
            return
        if not play.attributes.get("tags"):
            ctx.report("Add 'tags' to this play.", play.line)


class NoVarsPromptCheck:
    """Interactive prompts block unattended runs and CI pipelines."""

    key = "no-vars-prompt"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        if "vars_prompt" in play.attributes:
            ctx.report(
                "Remove 'vars_prompt'; pass values with extra vars or a vault instead.",
                play.line_of("vars_prompt"),
            )


class LimitTasksPerPlayCheck:
    """Plays with many tasks should be split into roles."""

    key = "limit-tasks-per-play"

    def __init__(self, max_tasks: int = 50) -> None:
        self.max_tasks = max_tasks

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        count = len(play.all_tasks())
        if count > self.max_tasks:
            ctx.report(
                f"Move tasks of this play into roles: {count} tasks, "
                f"maximum allowed is {self.max_tasks}.",
                play.line,
            )


class VariableNameFormatCheck:
    """Variable names should be lowercase snake_case.

    Block ``vars`` are checked too; a name already defined by an enclosing
    play or block is reported only where it was first defined.
    """

    key = "variable-name-format"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        self._check(play.attributes.get("vars"), {}, play.line_of("vars"), ctx)

    def visit_block(self, block: Block, scope: Scope, ctx: CheckContext) -> None:
        self._check(block.attributes.get("vars"), scope.variables, block.line_of("vars"), ctx)

    def _check(
        self, variables: object, inherited: dict[str, Any], line: int, ctx: CheckContext
    ) -> None:
        if not isinstance(variables, dict):
            return
        for name in variables:
            if name in inherited:
                continue
            if not _VARIABLE_NAME_RE.match(str(name)):
                ctx.report(
                    f"Rename variable '{name}' to match {_VARIABLE_NAME_RE.pattern}.", line
                )


class SecretsNotInVarsCheck:
    """Secrets written in clear text in play variables leak through source control."""

    key = "secrets-not-in-vars"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        variables = play.attributes.get("vars")
        if not isinstance(variables, dict):
            return
        for name, value in variables.items():
            if not _SECRET_NAME_RE.search(str(name)):
                continue
            if not isinstance(value, (str, int)) or value == "":
                continue
            if is_templated(value) or _is_vaulted(value):
                continue
            ctx.report(
                f"Move the value of '{name}' to a vault-encrypted file or variable.",
                play.line_of("vars"),
            )


class BecomeWithUserCheck:
    """``become_user`` has no effect unless ``become`` is enabled."""

    key = "become-with-user"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        attrs = play.attributes
        if "become_user" in attrs and not is_true(attrs.get("become")):
            ctx.report(
                "Set 'become: true' together with 'become_user'.", play.line_of("become_user")
            )


class UniqueTasksCheck:
    """Identical task definitions in one play usually indicate a copy-paste mistake."""

    key = "unique-tasks"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        seen: set[str] = set()
        for task in play.all_tasks():
            signature = repr(sorted(task.attributes.items(), key=lambda kv: kv[0]))
            if signature in seen:
                ctx.report("Remove this duplicate of an earlier task.", task.line)
            seen.add(signature)


class GroupTasksInBlockCheck:
    """Consecutive tasks sharing the same ``when`` should be grouped in a block."""

    key = "group-tasks-in-block"

    def __init__(self, min_run: int = 3) -> None:
        self.min_run = min_run

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        for section in (play.pre_tasks, play.tasks, play.post_tasks):
            run: list[Task] = []
            for node in section:
                if not isinstance(node, Task) or node.attributes.get("when") is None:
                    self._flush(run, ctx)
                    run = []
                    continue
                if run and node.attributes["when"] == run[0].attributes["when"]:
                    run.append(node)
                    continue
                self._flush(run, ctx)
                run = [node]
            self._flush(run, ctx)

    def _flush(self, run: list[Task], ctx: CheckContext) -> None:
        if len(run) >= self.min_run:
            ctx.report(
                f"Group these {len(run)} tasks sharing the same 'when' into a block.",
                run[0].line,
            )


class BlockTaskLimitCheck:
    """Blocks with many tasks are hard to follow."""

    key = "block-task-limit"

    def __init__(self, max_tasks: int = 20) -> None:
        self.max_tasks = max_tasks

    def visit_block(self, block: Block, scope: Scope, ctx: CheckContext) -> None:
        if len(block.tasks) > self.max_tasks:
            ctx.report(
                f"Split this block: {len(block.tasks)} tasks, "
                f"maximum allowed is {self.max_tasks}.",
                block.line,
            )
