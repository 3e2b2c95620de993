"""Checks that follow include/import references to other project files."""

from __future__ import annotations

from typing import TYPE_CHECKING

from playscan.checks.base import is_templated

if TYPE_CHECKING:
    from playscan.checks.base import CheckContext, Scope
    from playscan.model.nodes import Play, Task

_FILE_INCLUDES: frozenset[str] = frozenset(
    {"include_tasks", "import_tasks", "include_vars", "include", "import_playbook"}
)


def _static_reference(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    reference = value.strip()
    if not reference or is_templated(reference) or reference.startswith("/"):
        return None
    return reference


class IncludesResolveCheck:
    """Included and imported files must exist in the project, otherwise the
    playbook fails to load."""

    key = "includes-resolve"

    def visit_play(self, play: Play, scope: Scope, ctx: CheckContext) -> None:
        for key in ("import_playbook", "ansible.builtin.import_playbook"):
            reference = _static_reference(play.attributes.get(key))
            if reference is not None:
                self._verify(reference, (reference,), play.line_of(key), ctx)

    def visit_task(self, task: Task, scope: Scope, ctx: CheckContext) -> None:
        module = task.short_module
        if module not in _FILE_INCLUDES:
            return
        args = task.module_args
        reference = _static_reference(args.get("_raw_params") or args.get("file"))
        if reference is None:
            return
        candidates = [reference]
        if ctx.file.role_name is not None:
            folder = "vars" if module == "include_vars" else "tasks"
            candidates.append(f"../{folder}/{reference}")
        self._verify(reference, candidates, task.line_of(task.module_key or ""), ctx)

    visit_handler = visit_task

    def _verify(
        self, reference: str, candidates: tuple[str, ...] | list[str], line: int, ctx: CheckContext
    ) -> None:
        resolver = ctx.resolver
        if resolver is None:
            return
        if not any(resolver.exists_in_project(candidate) for candidate in candidates):
            ctx.report(f"Fix this reference: '{reference}' does not exist in the project.", line)
