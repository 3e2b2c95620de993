"""Resolve include/import references against the project's file listing."""

from __future__ import annotations

from collections.abc import Set as AbstractSet


def base_dir_of(relative_path: str) -> str:
    """Return everything before the last ``/`` (empty for root-level files)."""
    if not relative_path:
        return ""
    last = relative_path.rfind("/")
    if last <= 0:
        return ""
    return relative_path[:last]


def normalize_path(path: str) -> str:
    """Lexically normalize *path*: drop ``.``, let ``..`` pop one segment.

    A ``..`` with nothing left to pop is dropped silently, so references
    escaping the project root collapse onto it instead of failing.
    """
    parts: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return "/".join(parts)


class PathResolver:
    """Resolves references made from one file against the Project Path Index.

    Pure string manipulation; no disk access.  One resolver is bound to
    each analysed file and shares the run's read-only path index.
    """

    def __init__(self, current_path: str, path_index: AbstractSet[str]) -> None:
        self._current_path = current_path.replace("\\", "/")
        self._path_index = path_index

    @property
    def current_path(self) -> str:
        return self._current_path

    def resolve(self, reference: str | None) -> str | None:
        """Return the normalized project-relative path of *reference*."""
        if reference is None or not reference.strip():
            return None
        base_dir = base_dir_of(self._current_path)
        ref = reference.replace("\\", "/")
        combined = f"{base_dir}/{ref}" if base_dir else ref
        return normalize_path(combined)

    def exists_in_project(self, reference: str | None) -> bool:
        """Return True iff *reference* resolves to a file in the path index."""
        resolved = self.resolve(reference)
        if resolved is None:
            return False
        return resolved in self._path_index
