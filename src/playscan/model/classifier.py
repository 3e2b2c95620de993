"""Classify project files as playbooks or role metadata."""

from __future__ import annotations

import re
from enum import Enum

_ROLE_META_RE = re.compile(r"(?:^|/)meta/main\.ya?ml$")
_YAML_SUFFIXES: tuple[str, ...] = (".yml", ".yaml")


class FileKind(Enum):
    """Classification of a project file."""

    PLAYBOOK = "playbook"
    ROLE_META = "role-meta"
    SKIPPED = "skipped"


def is_role_meta_file(relative_path: str) -> bool:
    """Return True for a role's ``meta/main.yml`` (or ``.yaml``)."""
    return _ROLE_META_RE.search(relative_path.replace("\\", "/")) is not None


def is_yaml_file(relative_path: str) -> bool:
    return relative_path.lower().endswith(_YAML_SUFFIXES)


def classify(relative_path: str) -> FileKind:
    """Classify a file by its project-relative path alone (before parsing)."""
    if not is_yaml_file(relative_path):
        return FileKind.SKIPPED
    if is_role_meta_file(relative_path):
        return FileKind.ROLE_META
    return FileKind.PLAYBOOK
