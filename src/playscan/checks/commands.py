"""Checks on command, shell and raw tasks."""

from __future__ import annotations

import re
import shlex
from typing import TYPE_CHECKING

from playscan.checks.base import is_templated
from playscan.checks.modules import COMMAND_MODULES, COMMAND_TO_MODULE

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext, Scope
    from playscan.model.nodes import Task

_SHELL_FEATURES_RE = re.compile(r"\||>|<|&&|;|\$\(|`|\*")
_INLINE_ENV_RE = re.compile(r"^\s*[A-Za-z_][A-Za-z0-9_]*=\S*\s+\S")
_PIPE_RE = re.compile(r"(?<!\|)\|(?!\|)")


def command_text(task: Task) -> str | None:
    """Return the command line of a command/shell/raw task, or None for other tasks."""
    if task.short_module not in COMMAND_MODULES:
        return None
    args = task.module_args
    for key in ("_raw_params", "cmd"):
        value = args.get(key)
        if isinstance(value, str) and value.strip():
            return value
    argv = args.get("argv")
    if isinstance(argv, list):
        return " ".join(str(item) for item in argv)
    return ""


def _executable(text: str) -> str | None:
    try:
        words = shlex.split(text, comments=False)
    except ValueError:
        words = text.split()
    for word in words:
        if "=" in word and not word.startswith(("/", ".")):
            continue  # inline environment assignment
        return word.rsplit("/", 1)[-1]
    return None


class UseModuleNotCommandCheck:
    """Dedicated modules are idempotent and report changes correctly; commands are not."""

    key = "use-module-not-command"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        text = command_text(task)
        if not text:
            return
        executable = _executable(text)
        if executable is not None and executable in COMMAND_TO_MODULE:
            ctx.report(
                f"Use {COMMAND_TO_MODULE[executable]} instead of running '{executable}'.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class CommandNotShellWhenPossibleCheck:
    """The command module does not go through a shell: pipes, redirections and
    globbing are passed literally. Use the shell module for them."""

    key = "command-not-shell-when-possible"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module != "command":
            return
        text = command_text(task) or ""
        if _SHELL_FEATURES_RE.search(text):
            ctx.report(
                "Use the shell module: this command relies on shell features.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class CommandChangedWhenCheck:
    """Commands always report 'changed'; declare when they really change something."""

    key = "command-changed-when"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if command_text(task) is None:
            return
        if "changed_when" in task.attributes:
            return
        args = task.module_args
        if "creates" in args or "removes" in args:
            return
        ctx.report(
            "Add 'changed_when' (or 'creates'/'removes') to this command task.",
            task.line_of(task.module_key or ""),
        )


class CommandArgsFormCheck:
    """Interpolating variables into a free-form command line allows command injection.
    Pass arguments with ``argv`` instead."""

    key = "command-args-form"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module not in COMMAND_MODULES:
            return
        raw = task.module_args.get("_raw_params")
        if isinstance(raw, str) and is_templated(raw):
            ctx.report(
                "Pass templated arguments with 'argv' instead of a free-form command line.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class EnvBlockNotInlineCheck:
    """Set environment variables with the ``environment`` keyword, not inline in commands."""

    key = "env-block-not-inline"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        text = command_text(task)
        if text and _INLINE_ENV_RE.match(text):
            ctx.report(
                "Move inline environment variables to the 'environment' keyword.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class ShellPipeSafeCheck:
    """Without ``pipefail`` a failing command in a pipeline goes unnoticed."""

    key = "shell-pipe-safe"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module != "shell":
            return
        text = command_text(task) or ""
        if _PIPE_RE.search(text) and "pipefail" not in text:
            ctx.report(
                "Start this pipeline with 'set -o pipefail' so failures are detected.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task
