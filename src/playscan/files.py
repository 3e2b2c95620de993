"""Project file discovery and the project path index."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from playscan.model.classifier import is_yaml_file

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

SKIP_DIRS: frozenset[str] = frozenset(
    {".git", ".hg", ".svn", ".tox", ".venv", "venv", "node_modules", "__pycache__"}
)


@dataclass(frozen=True)
class ProjectFile:
    """A file on disk, addressed by its project-relative POSIX path."""

    relative_path: str
    absolute_path: Path

    def read_text(self) -> str:
        return self.absolute_path.read_text(encoding="utf-8", errors="replace")


@dataclass(frozen=True)
class MemoryFile:
    """A file whose content is already in memory."""

    relative_path: str
    content: str

    def read_text(self) -> str:
        return self.content


@dataclass(frozen=True)
class ProjectListing:
    """Files to analyse plus the index of every known project path."""

    files: list[ProjectFile]
    path_index: frozenset[str]


def is_excluded(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if *relative_path* matches any of the glob *patterns*."""
    return any(fnmatch.fnmatch(relative_path, pattern) for pattern in patterns)


def iter_project_paths(project_root: Path) -> list[str]:
    """Return the sorted project-relative paths of every file under *project_root*.

    Directories in :data:`SKIP_DIRS` are not descended into.
    """
    paths: list[str] = []
    for file_path in sorted(project_root.rglob("*")):
        rel = file_path.relative_to(project_root)
        if any(part in SKIP_DIRS for part in rel.parts[:-1]):
            continue
        if not file_path.is_file():
            continue
        paths.append(rel.as_posix())
    return paths


def build_path_index(paths: Iterable[str]) -> frozenset[str]:
    return frozenset(path.replace("\\", "/") for path in paths)


def collect_project(project_root: Path, exclude: Iterable[str] = ()) -> ProjectListing:
    """List the YAML files to analyse and index every project path.

    Excluded files are not analysed but stay in the path index, so
    references to them still resolve.
    """
    patterns = tuple(exclude)
    all_paths = iter_project_paths(project_root)
    files: list[ProjectFile] = []
    for rel in all_paths:
        if not is_yaml_file(rel):
            continue
        if is_excluded(rel, patterns):
            logger.debug("Excluding %s", rel)
            continue
        files.append(ProjectFile(rel, project_root / rel))
    return ProjectListing(files=files, path_index=build_path_index(all_paths))
