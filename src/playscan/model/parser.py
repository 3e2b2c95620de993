"""PyYAML-based parsers for playbooks and role metadata.

Both parsers work on composed YAML nodes so that every play, task and
mapping key keeps its source line.  They never raise: syntax errors are
returned as a :class:`~playscan.model.nodes.ParseError` on the model.
"""

from __future__ import annotations

from typing import Any

import yaml

from playscan.model.nodes import Block, ParseError, Play, PlaybookFile, RoleMeta, Task

# Keys whose presence marks a sequence entry as a play rather than a task.
_PLAY_MARKERS: frozenset[str] = frozenset(
    {
        "hosts",
        "import_playbook",
        "ansible.builtin.import_playbook",
        "tasks",
        "pre_tasks",
        "post_tasks",
        "roles",
        "handlers",
    }
)

_TASK_SECTIONS: tuple[str, ...] = ("pre_tasks", "tasks", "post_tasks", "handlers")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _line(node: yaml.Node) -> int:
    return int(node.start_mark.line) + 1


def _to_parse_error(exc: yaml.YAMLError) -> ParseError:
    """Convert a PyYAML exception into a ParseError with a 1-based line."""
    mark = getattr(exc, "problem_mark", None) or getattr(exc, "context_mark", None)
    line = int(mark.line) + 1 if mark is not None else None
    parts = [
        str(part)
        for part in (getattr(exc, "context", None), getattr(exc, "problem", None))
        if part
    ]
    message = ", ".join(parts) if parts else str(exc).strip()
    if not message:
        message = "invalid YAML"
    return ParseError(message=message, line=line)


def _compose(content: str) -> tuple[yaml.Node | None, yaml.SafeLoader]:
    loader = yaml.SafeLoader(content)
    return loader.get_single_node(), loader


def _mapping(
    node: yaml.MappingNode, loader: yaml.SafeLoader
) -> tuple[dict[str, Any], dict[str, int], dict[str, yaml.Node]]:
    """Construct a mapping node into (attributes, key lines, value nodes)."""
    loader.flatten_mapping(node)
    attributes: dict[str, Any] = {}
    key_lines: dict[str, int] = {}
    value_nodes: dict[str, yaml.Node] = {}
    for key_node, value_node in node.value:
        raw_key = loader.construct_object(key_node, deep=True)
        key = raw_key if isinstance(raw_key, str) else str(raw_key)
        attributes[key] = loader.construct_object(value_node, deep=True)
        key_lines[key] = _line(key_node)
        value_nodes[key] = value_node
    return attributes, key_lines, value_nodes


def _collect_lines(node: yaml.Node, prefix: str, out: dict[str, int]) -> None:
    """Record the line of every mapping key under dotted paths."""
    if not isinstance(node, yaml.MappingNode):
        return
    for key_node, value_node in node.value:
        if not isinstance(key_node, yaml.ScalarNode):
            continue
        path = f"{prefix}.{key_node.value}" if prefix else str(key_node.value)
        out.setdefault(path, _line(key_node))
        _collect_lines(value_node, path, out)


def _build_tasks(
    node: yaml.Node | None, loader: yaml.SafeLoader, kind: str
) -> tuple[Task | Block, ...]:
    if not isinstance(node, yaml.SequenceNode):
        return ()
    result: list[Task | Block] = []
    for item in node.value:
        if not isinstance(item, yaml.MappingNode):
            continue
        attributes, key_lines, values = _mapping(item, loader)
        if "block" in attributes:
            result.append(
                Block(
                    attributes=attributes,
                    line=_line(item),
                    tasks=_build_tasks(values.get("block"), loader, kind),
                    rescue=_build_tasks(values.get("rescue"), loader, kind),
                    always=_build_tasks(values.get("always"), loader, kind),
                    key_lines=key_lines,
                )
            )
        else:
            result.append(
                Task(attributes=attributes, line=_line(item), key_lines=key_lines, kind=kind)
            )
    return tuple(result)


def _build_play(node: yaml.MappingNode, loader: yaml.SafeLoader) -> Play:
    attributes, key_lines, values = _mapping(node, loader)
    sections = {
        section: _build_tasks(
            values.get(section), loader, "handler" if section == "handlers" else "task"
        )
        for section in _TASK_SECTIONS
    }
    roles = attributes.get("roles")
    return Play(
        attributes=attributes,
        line=_line(node),
        key_lines=key_lines,
        pre_tasks=sections["pre_tasks"],
        tasks=sections["tasks"],
        post_tasks=sections["post_tasks"],
        handlers=sections["handlers"],
        roles=tuple(roles) if isinstance(roles, list) else (),
    )


def _is_handlers_file(file_id: str) -> bool:
    return "handlers" in file_id.replace("\\", "/").split("/")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_playbook(file_id: str, content: str) -> PlaybookFile:
    """Parse *content* into a :class:`PlaybookFile`.

    A top-level sequence of plays yields one :class:`Play` per entry.  A
    top-level sequence of tasks (role ``tasks/`` or ``handlers/`` files)
    is wrapped in a single implicit play.  Any other document (empty,
    mapping, scalar) yields no plays and no parse error.
    """
    try:
        root, loader = _compose(content)
        try:
            if not isinstance(root, yaml.SequenceNode):
                return PlaybookFile(file_id=file_id)
            entries = [item for item in root.value if isinstance(item, yaml.MappingNode)]
            if not entries:
                return PlaybookFile(file_id=file_id)
            if any(_is_play_node(item) for item in entries):
                plays = tuple(_build_play(item, loader) for item in entries)
            else:
                plays = (_build_implicit_play(file_id, root, loader),)
        finally:
            loader.dispose()
    except yaml.YAMLError as exc:
        return PlaybookFile(file_id=file_id, parse_error=_to_parse_error(exc))
    return PlaybookFile(file_id=file_id, plays=plays)


def _is_play_node(node: yaml.MappingNode) -> bool:
    return any(
        isinstance(key_node, yaml.ScalarNode) and key_node.value in _PLAY_MARKERS
        for key_node, _ in node.value
    )


def _build_implicit_play(file_id: str, root: yaml.SequenceNode, loader: yaml.SafeLoader) -> Play:
    if _is_handlers_file(file_id):
        return Play(
            attributes={},
            line=_line(root),
            handlers=_build_tasks(root, loader, "handler"),
            implicit=True,
        )
    return Play(
        attributes={},
        line=_line(root),
        tasks=_build_tasks(root, loader, "task"),
        implicit=True,
    )


def parse_role_meta(file_id: str, content: str) -> RoleMeta:
    """Parse a role ``meta/main.yml`` into a :class:`RoleMeta`.

    Keys of nested mappings are addressable in ``key_lines`` with dotted
    paths (``galaxy_info.galaxy_tags``).
    """
    try:
        root, loader = _compose(content)
        try:
            if not isinstance(root, yaml.MappingNode):
                return RoleMeta(file_id=file_id)
            data, _, _ = _mapping(root, loader)
            key_lines: dict[str, int] = {}
            _collect_lines(root, "", key_lines)
        finally:
            loader.dispose()
    except yaml.YAMLError as exc:
        return RoleMeta(file_id=file_id, parse_error=_to_parse_error(exc))
    return RoleMeta(file_id=file_id, data=data, key_lines=key_lines)
