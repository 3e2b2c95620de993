"""Structured model of parsed playbooks and role metadata files."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# ---------------------------------------------------------------------------
# Keywords
# ---------------------------------------------------------------------------

# Task-level keywords (never module names).
TASK_KEYWORDS: frozenset[str] = frozenset(
    {
        "name", "when", "register", "tags", "vars", "block", "rescue", "always",
        "become", "become_user", "become_method", "become_flags", "become_exe",
        "changed_when", "failed_when", "ignore_errors", "ignore_unreachable",
        "loop", "loop_control", "with_items", "with_dict", "with_list",
        "with_fileglob", "with_first_found", "with_together", "with_sequence",
        "with_nested", "with_subelements", "with_indexed_items", "with_random_choice",
        "notify", "listen", "environment", "no_log", "retries", "delay", "until",
        "check_mode", "diff", "any_errors_fatal", "throttle", "timeout",
        "collections", "module_defaults", "run_once", "delegate_to",
        "delegate_facts", "connection", "args", "async", "poll", "port",
        "remote_user", "debugger", "local_action", "action",
        # deprecated keywords, still recognised so they are never taken for modules
        "sudo", "sudo_user", "su", "su_user", "always_run",
    }
)


# ---------------------------------------------------------------------------
# Nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParseError:
    """A YAML syntax error found while parsing a file."""

    message: str
    line: int | None = None


@dataclass(frozen=True)
class Task:
    """A single task or handler.

    ``attributes`` holds the raw mapping in source order; ``key_lines``
    maps every top-level key to its 1-based source line.
    """

    attributes: dict[str, Any]
    line: int
    key_lines: dict[str, int] = field(default_factory=dict)
    kind: str = "task"  # "task" | "handler"

    @property
    def name(self) -> str | None:
        value = self.attributes.get("name")
        return str(value) if value is not None else None

    @property
    def module(self) -> str | None:
        """Return the module name: the ``action`` value or the first non-keyword key."""
        for key in ("action", "local_action"):
            value = self.attributes.get(key)
            if isinstance(value, str) and value.strip():
                return value.split()[0]
            if isinstance(value, dict) and "module" in value:
                return str(value["module"])
        for key in self.attributes:
            if key not in TASK_KEYWORDS:
                return key
        return None

    @property
    def module_key(self) -> str | None:
        """Return the attribute key holding the module invocation (``action`` included)."""
        for key in self.attributes:
            if key not in TASK_KEYWORDS:
                return key
        for key in ("action", "local_action"):
            if key in self.attributes:
                return key
        return None

    @property
    def short_module(self) -> str | None:
        """Module name without its collection prefix (``ansible.builtin.copy`` -> ``copy``)."""
        module = self.module
        if module is None:
            return None
        return module.rsplit(".", 1)[-1]

    @property
    def module_args(self) -> dict[str, Any]:
        """Return module arguments as a mapping.

        Free-form arguments are exposed under ``_raw_params``; task-level
        ``args:`` entries are merged in.
        """
        args: dict[str, Any] = {}
        key = self.module_key
        value = self.attributes.get(key) if key is not None else None
        if isinstance(value, dict):
            args.update(value)
        elif isinstance(value, str):
            raw = value
            if key in ("action", "local_action"):
                parts = value.split(None, 1)
                raw = parts[1] if len(parts) > 1 else ""
            args["_raw_params"] = raw
        extra = self.attributes.get("args")
        if isinstance(extra, dict):
            args.update(extra)
        return args

    def line_of(self, key: str) -> int:
        return self.key_lines.get(key, self.line)


@dataclass(frozen=True)
class Block:
    """A ``block:`` grouping with optional ``rescue`` and ``always`` sections."""

    attributes: dict[str, Any]
    line: int
    tasks: tuple[Task | Block, ...] = ()
    rescue: tuple[Task | Block, ...] = ()
    always: tuple[Task | Block, ...] = ()
    key_lines: dict[str, int] = field(default_factory=dict)

    @property
    def name(self) -> str | None:
        value = self.attributes.get("name")
        return str(value) if value is not None else None

    def children(self) -> tuple[Task | Block, ...]:
        return self.tasks + self.rescue + self.always

    def line_of(self, key: str) -> int:
        return self.key_lines.get(key, self.line)


@dataclass(frozen=True)
class Play:
    """A single play of a playbook."""

    attributes: dict[str, Any]
    line: int
    key_lines: dict[str, int] = field(default_factory=dict)
    pre_tasks: tuple[Task | Block, ...] = ()
    tasks: tuple[Task | Block, ...] = ()
    post_tasks: tuple[Task | Block, ...] = ()
    handlers: tuple[Task | Block, ...] = ()
    roles: tuple[Any, ...] = ()
    implicit: bool = False  # task list of a role file, not a real play

    @property
    def name(self) -> str | None:
        value = self.attributes.get("name")
        return str(value) if value is not None else None

    @property
    def is_import(self) -> bool:
        return any(
            key in self.attributes
            for key in ("import_playbook", "ansible.builtin.import_playbook")
        )

    def line_of(self, key: str) -> int:
        return self.key_lines.get(key, self.line)

    def all_tasks(self) -> list[Task]:
        """Return every task of the play (blocks flattened, handlers excluded)."""
        result: list[Task] = []
        for section in (self.pre_tasks, self.tasks, self.post_tasks):
            result.extend(flatten(section))
        return result

    def handler_names(self) -> set[str]:
        names: set[str] = set()
        for handler in flatten(self.handlers):
            if handler.name:
                names.add(handler.name)
            listen = handler.attributes.get("listen")
            if isinstance(listen, str):
                names.add(listen)
            elif isinstance(listen, list):
                names.update(str(item) for item in listen)
        return names


@dataclass(frozen=True)
class PlaybookFile:
    """Parsed playbook: ordered plays plus an optional parse error."""

    file_id: str
    plays: tuple[Play, ...] = ()
    parse_error: ParseError | None = None


@dataclass(frozen=True)
class RoleMeta:
    """Parsed ``meta/main.yml`` of a role."""

    file_id: str
    data: dict[str, Any] = field(default_factory=dict)
    key_lines: dict[str, int] = field(default_factory=dict)
    parse_error: ParseError | None = None

    @property
    def galaxy_info(self) -> dict[str, Any] | None:
        info = self.data.get("galaxy_info")
        return info if isinstance(info, dict) else None

    def line_of(self, key: str) -> int | None:
        return self.key_lines.get(key)


def flatten(nodes: tuple[Task | Block, ...]) -> list[Task]:
    """Flatten blocks into the plain list of tasks they contain."""
    result: list[Task] = []
    for node in nodes:
        if isinstance(node, Block):
            result.extend(flatten(node.children()))
        else:
            result.append(node)
    return result
