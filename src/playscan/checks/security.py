"""Security-sensitive checks: secrets, permissions, transport and package pinning."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from playscan.checks.base import is_true, iter_strings
from playscan.checks.modules import FILE_MODULES, PACKAGE_MODULES

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext, Scope
    from playscan.model.nodes import PlaybookFile, Task

_SECRET_ARG_RE = re.compile(
    r"^(password|passwd|pass|secret|token|api_key|apikey|private_key|client_secret|"
    r"login_password|auth_token|access_key|secret_key)$",
    re.IGNORECASE,
)
_HTTP_RE = re.compile(r"\bhttp://(?!(localhost|127\.0\.0\.1|\[::1\])[:/])", re.IGNORECASE)
_RISKY_MODE_LINE_RE = re.compile(r"^\s*(?:-\s+)?mode:\s*([1-7][0-7]{2,3})\s*(?:#.*)?$")
_SYMBOLIC_WORLD_WRITE_RE = re.compile(r"(^|,)[oa]*[+=][rwxXst]*w")
_VERSION_SPEC_RE = re.compile(r"[=<>~!]=?|@|\.whl$|\.tar\.gz$|\.zip$|^git\+|://")


def _file_mode(value: object) -> int | None:
    """Return the numeric mode of a ``mode:`` argument, or None when symbolic/templated."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r"0?[0-7]{3,4}", value.strip()):
        return int(value.strip(), 8)
    return None


class NoLogSecretsCheck:
    """Tasks handling credentials must set ``no_log: true`` so secrets stay out of logs."""

    key = "no-log-secrets"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if is_true(task.attributes.get("no_log")):
            return
        for name, value in task.module_args.items():
            if _SECRET_ARG_RE.match(str(name)) and value not in (None, ""):
                ctx.report(
                    f"Set 'no_log: true' on this task: argument '{name}' holds a secret.",
                    task.line_of(task.module_key or ""),
                )
                return

    visit_handler = visit_task


class RequireHttpsCheck:
    """Downloads and API calls over plain HTTP can be intercepted and tampered with."""

    key = "require-https"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        for value in iter_strings(task.module_args):
            if _HTTP_RE.search(value):
                ctx.report(
                    "Use 'https://' instead of 'http://'.", task.line_of(task.module_key or "")
                )
                return

    visit_handler = visit_task


class RestrictWorldWriteCheck:
    """World-writable files can be modified by any local user."""

    key = "restrict-world-write"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module not in FILE_MODULES:
            return
        value = task.module_args.get("mode")
        mode = _file_mode(value)
        world_writable = (mode is not None and mode & 0o002) or (
            isinstance(value, str) and _SYMBOLIC_WORLD_WRITE_RE.search(value) is not None
        )
        if world_writable:
            ctx.report(
                f"Remove the world-writable bit from mode '{value}'.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class NumericFileModeCheck:
    """An unquoted mode without a leading zero (``mode: 644``) is read as a decimal
    number and yields unexpected permissions."""

    key = "numeric-file-mode"

    def visit_file(self, playbook: PlaybookFile, ctx: CheckContext) -> None:
        for number, line in enumerate(ctx.file.lines, start=1):
            match = _RISKY_MODE_LINE_RE.match(line)
            if match:
                ctx.report(
                    f"Quote this mode with a leading zero: '0{match.group(1)}'.",
                    number,
                )


def _creates_file(task: Task) -> bool:
    module = task.short_module
    if module in ("copy", "template", "get_url"):
        return True
    return module == "file" and task.module_args.get("state") in ("directory", "touch")


class ExplicitModeOwnerCheck:
    """Files created without an explicit mode get permissions from the remote umask."""

    key = "explicit-mode-owner"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if _creates_file(task) and "mode" not in task.module_args:
            ctx.report(
                f"Set an explicit 'mode' for this {task.short_module} task.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class ExplicitOwnerGroupCheck:
    """Without ``owner`` and ``group``, created files belong to the connecting user."""

    key = "explicit-owner-group"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if not _creates_file(task):
            return
        missing = [name for name in ("owner", "group") if name not in task.module_args]
        if missing:
            ctx.report(
                f"Set an explicit {' and '.join(repr(m) for m in missing)} "
                f"for this {task.short_module} task.",
                task.line_of(task.module_key or ""),
            )

    visit_handler = visit_task


class PinVersionNotLatestCheck:
    """``state: latest`` makes runs non-reproducible and may upgrade packages unexpectedly."""

    key = "pin-version-not-latest"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module in PACKAGE_MODULES and task.module_args.get("state") == "latest":
            ctx.report(
                "Pin a package version instead of using 'state: latest'.",
                task.line_of(task.module_key or ""),
            )


class PinPackageVersionCheck:
    """Python packages installed without a version specifier drift between runs."""

    key = "pin-package-version"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module != "pip":
            return
        args = task.module_args
        if "version" in args or "requirements" in args:
            return
        names = args.get("name")
        packages = [names] if isinstance(names, str) else names if isinstance(names, list) else []
        unpinned = [str(pkg) for pkg in packages if not _VERSION_SPEC_RE.search(str(pkg))]
        if unpinned:
            ctx.report(
                f"Pin a version for pip package(s): {', '.join(unpinned)}.",
                task.line_of(task.module_key or ""),
            )


class AbsoluteOrRolePathsCheck:
    """Relative ``src`` paths climbing out with ``../`` depend on the working directory."""

    key = "absolute-or-role-paths"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        if task.short_module not in ("copy", "template", "script", "unarchive"):
            return
        src = task.module_args.get("src")
        if isinstance(src, str) and "../" in src.replace("\\", "/"):
            ctx.report(
                f"Use a role-relative or absolute path instead of '{src}'.",
                task.line_of(task.module_key or ""),
            )


class SudoNopasswdLimitCheck:
    """Granting passwordless sudo for all commands removes an important safeguard."""

    key = "sudo-nopasswd-limit"

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        for value in iter_strings(task.module_args):
            if re.search(r"NOPASSWD:\s*ALL\b", value):
                ctx.report(
                    "Restrict this NOPASSWD sudo rule to specific commands.",
                    task.line_of(task.module_key or ""),
                )
                return
