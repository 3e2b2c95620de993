"""Check and Finding contracts shared by every rule implementation.

A check is any object with a ``key`` attribute and any subset of the
visit hooks below.  The traversal engine looks hooks up by name, so a
check only implements what it needs:

``visit_file(playbook, ctx)``
    once per playbook file, before any play.
``visit_play(play, scope, ctx)`` / ``visit_block(block, scope, ctx)`` /
``visit_task(task, scope, ctx)`` / ``visit_handler(task, scope, ctx)``
    at each node of the playbook tree.
``visit_role_meta(meta, ctx)``
    once per role metadata file.

Checks keep no per-file state on ``self``; everything a hook needs is on
the :class:`CheckContext` it receives.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from playscan.engine.path_resolver import PathResolver
    from playscan.model.nodes import Block, Play, RoleMeta, Task

HOOK_NAMES: tuple[str, ...] = (
    "visit_file",
    "visit_play",
    "visit_block",
    "visit_task",
    "visit_handler",
    "visit_role_meta",
)

_TEMPLATE_RE = re.compile(r"{{.*?}}|{%.*?%}", re.DOTALL)


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """One rule violation found in one file."""

    rule_key: str
    message: str
    line: int | None = None

    def __post_init__(self) -> None:
        if not self.message or not self.message.strip():
            msg = f"Finding for '{self.rule_key}' must have a non-empty message"
            raise ValueError(msg)
        if self.line is not None and self.line < 1:
            object.__setattr__(self, "line", None)


# ---------------------------------------------------------------------------
# Contexts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FileContext:
    """Read-only facts about the file being analysed."""

    relative_path: str
    content: str
    resolver: PathResolver | None = None

    @property
    def lines(self) -> list[str]:
        return self.content.splitlines()

    @property
    def role_name(self) -> str | None:
        """Name of the role the file belongs to (``roles/<name>/...``), if any."""
        parts = self.relative_path.split("/")
        for idx, part in enumerate(parts[:-1]):
            if part == "roles" and idx + 1 < len(parts) - 1:
                return parts[idx + 1]
        return None


@dataclass
class CheckContext:
    """Per-check, per-file view handed to every hook.

    ``report`` is bound to the owning check's key, so a check can only
    emit findings under its own rule and never sees other checks' output.
    """

    rule_key: str
    file: FileContext
    _findings: list[Finding] = field(default_factory=list, repr=False)

    @property
    def resolver(self) -> PathResolver | None:
        return self.file.resolver

    def report(self, message: str, line: int | None = None) -> None:
        self._findings.append(Finding(self.rule_key, message, line))

    def findings(self) -> list[Finding]:
        return list(self._findings)


@dataclass(frozen=True)
class Scope:
    """Enclosing context of a visited node."""

    play: Play | None = None
    blocks: tuple[Block, ...] = ()
    variables: dict[str, Any] = field(default_factory=dict)
    tags: frozenset[str] = frozenset()

    def enter_block(self, block: Block) -> Scope:
        return Scope(
            play=self.play,
            blocks=(*self.blocks, block),
            variables=_merge_vars(self.variables, block.attributes.get("vars")),
            tags=self.tags | as_tags(block.attributes.get("tags")),
        )


# ---------------------------------------------------------------------------
# Check protocol
# ---------------------------------------------------------------------------


class Check(Protocol):
    """Minimal structural type of a check: a bound rule key."""

    key: str


# ---------------------------------------------------------------------------
# Helpers shared by check implementations
# ---------------------------------------------------------------------------


def as_tags(value: object) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset(tag.strip() for tag in value.split(",") if tag.strip())
    if isinstance(value, list):
        return frozenset(str(tag) for tag in value)
    return frozenset()


def _merge_vars(current: dict[str, Any], extra: object) -> dict[str, Any]:
    if not isinstance(extra, dict):
        return current
    merged = dict(current)
    merged.update(extra)
    return merged


def is_templated(value: object) -> bool:
    return isinstance(value, str) and _TEMPLATE_RE.search(value) is not None


def iter_strings(value: object) -> list[str]:
    """Return every string nested anywhere in *value*."""
    if isinstance(value, str):
        return [value]
    result: list[str] = []
    if isinstance(value, dict):
        for item in value.values():
            result.extend(iter_strings(item))
    elif isinstance(value, list):
        for item in value:
            result.extend(iter_strings(item))
    return result


def is_true(value: object) -> bool:
    """Ansible truthiness for literal YAML values."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"yes", "true", "on", "1", "y"}
    return False


def role_meta_line(meta: RoleMeta, *paths: str) -> int | None:
    for path in paths:
        line = meta.line_of(path)
        if line is not None:
            return line
    return None


def task_label(task: Task) -> str:
    return f"'{task.name}'" if task.name else f"at line {task.line}"
