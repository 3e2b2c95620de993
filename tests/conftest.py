"""Shared test fixtures for playscan."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from playscan.checks.base import FileContext
from playscan.engine.catalog import RuleCatalog
from playscan.engine.path_resolver import PathResolver
from playscan.engine.walker import walk, walk_role_meta
from playscan.model.parser import parse_playbook, parse_role_meta

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

    from playscan.checks.base import Finding


@pytest.fixture()
def catalog() -> RuleCatalog:
    """The built-in rule catalog."""
    return RuleCatalog.build()


@pytest.fixture()
def scan_text() -> Callable[..., list[Finding]]:
    """Parse playbook text and walk it with the given checks.

    Usage: ``scan_text(content, check, ..., path="site.yml", path_index=())``.
    """

    def _scan(
        content: str, *checks: Any, path: str = "site.yml", path_index: Iterable[str] = ()
    ) -> list[Finding]:
        playbook = parse_playbook(path, content)
        ctx = FileContext(path, content, PathResolver(path, frozenset(path_index)))
        return walk(playbook, list(checks), ctx)

    return _scan


@pytest.fixture()
def scan_meta() -> Callable[..., list[Finding]]:
    """Parse role metadata text and run the given checks on it.

    Usage: ``scan_meta(content, check, ..., path="roles/web/meta/main.yml", path_index=())``.
    """

    def _scan(
        content: str,
        *checks: Any,
        path: str = "roles/web/meta/main.yml",
        path_index: Iterable[str] = (),
    ) -> list[Finding]:
        meta = parse_role_meta(path, content)
        ctx = FileContext(path, content, PathResolver(path, frozenset(path_index)))
        return walk_role_meta(meta, list(checks), ctx)

    return _scan


@pytest.fixture()
def tmp_project(tmp_path: Path) -> Path:
    """Create a small, clean Ansible project."""
    (tmp_path / "site.yml").write_text(
        "- hosts: all\n"
        "  tags: [test]\n"
        "  tasks:\n"
        "    - name: Ping hosts\n"
        "      ansible.builtin.ping:\n"
    )
    tasks_dir = tmp_path / "roles" / "web" / "tasks"
    tasks_dir.mkdir(parents=True)
    (tasks_dir / "main.yml").write_text(
        "- name: Show greeting\n"
        "  ansible.builtin.debug:\n"
        "    msg: hello\n"
    )
    return tmp_path
