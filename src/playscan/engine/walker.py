"""Traversal engine: one depth-first pass per file, every active check per node."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from playscan.checks.base import HOOK_NAMES, CheckContext, Scope, as_tags
from playscan.model.nodes import Block

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from playscan.checks.base import Check, FileContext, Finding
    from playscan.model.nodes import Play, PlaybookFile, RoleMeta, Task

logger = logging.getLogger(__name__)


class _Dispatcher:
    """Holds one CheckContext per check and invokes hooks with failure isolation."""

    def __init__(self, checks: Sequence[Check], file_context: FileContext) -> None:
        self._contexts: list[CheckContext] = [
            CheckContext(rule_key=check.key, file=file_context) for check in checks
        ]
        # hook name -> (check, bound method, context), in check order
        self._hooks: dict[str, list[tuple[Check, Callable[..., None], CheckContext]]] = {
            hook: [] for hook in HOOK_NAMES
        }
        for check, ctx in zip(checks, self._contexts, strict=True):
            for hook in HOOK_NAMES:
                method = getattr(check, hook, None)
                if callable(method):
                    self._hooks[hook].append((check, method, ctx))
        self._path = file_context.relative_path

    def dispatch(self, hook: str, *args: Any) -> None:
        for check, method, ctx in self._hooks[hook]:
            try:
                method(*args, ctx)
            except Exception:
                logger.warning(
                    "Check '%s' failed in %s on %s; continuing",
                    check.key,
                    hook,
                    self._path,
                    exc_info=True,
                )

    def findings(self) -> list[Finding]:
        result: list[Finding] = []
        for ctx in self._contexts:
            result.extend(ctx.findings())
        return result


def _play_scope(play: Play) -> Scope:
    variables = play.attributes.get("vars")
    return Scope(
        play=play,
        variables=dict(variables) if isinstance(variables, dict) else {},
        tags=as_tags(play.attributes.get("tags")),
    )


def _walk_nodes(
    nodes: tuple[Task | Block, ...],
    scope: Scope,
    dispatcher: _Dispatcher,
    task_hook: str,
) -> None:
    for node in nodes:
        if isinstance(node, Block):
            dispatcher.dispatch("visit_block", node, scope)
            inner = scope.enter_block(node)
            _walk_nodes(node.tasks, inner, dispatcher, task_hook)
            _walk_nodes(node.rescue, inner, dispatcher, task_hook)
            _walk_nodes(node.always, inner, dispatcher, task_hook)
        else:
            dispatcher.dispatch(task_hook, node, scope)


def walk(
    playbook: PlaybookFile, checks: Sequence[Check], file_context: FileContext
) -> list[Finding]:
    """Walk *playbook* once, invoking every check's hooks at every node.

    Checks are invoked in the order of *checks* at each node, so the
    resulting findings are reproducible for a fixed input.  A hook that
    raises is logged and skipped; the walk continues.
    """
    dispatcher = _Dispatcher(checks, file_context)
    dispatcher.dispatch("visit_file", playbook)
    for play in playbook.plays:
        scope = _play_scope(play)
        dispatcher.dispatch("visit_play", play, scope)
        _walk_nodes(play.pre_tasks, scope, dispatcher, "visit_task")
        _walk_nodes(play.tasks, scope, dispatcher, "visit_task")
        _walk_nodes(play.post_tasks, scope, dispatcher, "visit_task")
        _walk_nodes(play.handlers, scope, dispatcher, "visit_handler")
    return dispatcher.findings()


def walk_role_meta(
    meta: RoleMeta, checks: Sequence[Check], file_context: FileContext
) -> list[Finding]:
    """Invoke every check's ``visit_role_meta`` hook once."""
    dispatcher = _Dispatcher(checks, file_context)
    dispatcher.dispatch("visit_role_meta", meta)
    return dispatcher.findings()
