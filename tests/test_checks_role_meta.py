"""Tests for playscan.checks.role_meta."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from playscan.checks.role_meta import (
    RoleDirLayoutCheck,
    RoleGalaxyDepsCheck,
    RoleMetaFormatCheck,
    RoleMetaRuntimeCheck,
    RoleMetaTagsCheck,
    RoleMetaVideoLinksCheck,
    RoleNameFormatCheck,
)
from playscan.checks.text import ValidYamlCheck

if TYPE_CHECKING:
    from collections.abc import Callable

    from playscan.checks.base import Finding

    ScanMeta = Callable[..., list[Finding]]

_COMPLETE = """\
galaxy_info:
  role_name: web
  author: ops
  description: Web server
  license: MIT
  min_ansible_version: "2.15"
  galaxy_tags:
    - web
    - nginx
dependencies:
  - common
  - role: firewall
"""


@pytest.mark.parametrize(
    "check",
    [
        RoleMetaFormatCheck(),
        RoleMetaTagsCheck(),
        RoleMetaRuntimeCheck(),
        RoleMetaVideoLinksCheck(),
        RoleDirLayoutCheck(),
        RoleGalaxyDepsCheck(),
        RoleNameFormatCheck(),
    ],
)
def test_complete_metadata_is_clean(scan_meta: ScanMeta, check: object) -> None:
    assert scan_meta(_COMPLETE, check) == []


class TestRoleMetaFormat:
    def test_missing_galaxy_info(self, scan_meta: ScanMeta) -> None:
        findings = scan_meta("dependencies: []\n", RoleMetaFormatCheck())
        assert len(findings) == 1
        assert findings[0].line is None
        assert "galaxy_info" in findings[0].message

    def test_missing_fields(self, scan_meta: ScanMeta) -> None:
        findings = scan_meta("galaxy_info:\n  author: ops\n", RoleMetaFormatCheck())
        assert [f.line for f in findings] == [1]
        assert "description, license, min_ansible_version" in findings[0].message

    def test_syntax_error_left_to_valid_yaml(self, scan_meta: ScanMeta) -> None:
        content = "galaxy_info: [unclosed\n"
        assert scan_meta(content, RoleMetaFormatCheck()) == []
        findings = scan_meta(content, ValidYamlCheck())
        assert len(findings) == 1
        assert findings[0].rule_key == "valid-yaml"
        assert findings[0].message.startswith("Fix this YAML syntax error")


def test_galaxy_tags(scan_meta: ScanMeta) -> None:
    content = "galaxy_info:\n  galaxy_tags:\n    - web\n    - Web-Server\n"
    findings = scan_meta(content, RoleMetaTagsCheck())
    assert [f.line for f in findings] == [2]
    assert "Web-Server" in findings[0].message
    assert len(scan_meta("galaxy_info:\n  author: ops\n", RoleMetaTagsCheck())) == 1


def test_unquoted_min_ansible_version(scan_meta: ScanMeta) -> None:
    content = "galaxy_info:\n  author: ops\n  min_ansible_version: 2.9\n"
    findings = scan_meta(content, RoleMetaRuntimeCheck())
    assert [f.line for f in findings] == [3]


def test_video_link_without_title(scan_meta: ScanMeta) -> None:
    content = "galaxy_info:\n  video_links:\n    - url: https://example.com/v\n"
    findings = scan_meta(content, RoleMetaVideoLinksCheck())
    assert [f.line for f in findings] == [2]


def test_galaxy_dependencies(scan_meta: ScanMeta) -> None:
    content = "dependencies:\n  - common\n  - version: '1.0'\n  - ''\n"
    findings = scan_meta(content, RoleGalaxyDepsCheck())
    assert [f.line for f in findings] == [1, 1]
    assert len(scan_meta("dependencies: common\n", RoleGalaxyDepsCheck())) == 1


class TestRoleNameFormat:
    def test_explicit_role_name(self, scan_meta: ScanMeta) -> None:
        content = "galaxy_info:\n  role_name: WebServer\n"
        findings = scan_meta(content, RoleNameFormatCheck())
        assert [f.line for f in findings] == [2]

    def test_directory_name_without_line(self, scan_meta: ScanMeta) -> None:
        findings = scan_meta(
            "galaxy_info:\n  author: ops\n",
            RoleNameFormatCheck(),
            path="roles/My-Role/meta/main.yml",
        )
        assert [f.line for f in findings] == [None]
        assert "My-Role" in findings[0].message


class TestRoleDirLayout:
    _META = "galaxy_info:\n  author: ops\n"

    def test_missing_tasks_main(self, scan_meta: ScanMeta) -> None:
        findings = scan_meta(self._META, RoleDirLayoutCheck())
        assert [f.line for f in findings] == [None]
        assert "'web'" in findings[0].message

    @pytest.mark.parametrize("entry", ["roles/web/tasks/main.yml", "roles/web/tasks/main.yaml"])
    def test_tasks_main_present(self, scan_meta: ScanMeta, entry: str) -> None:
        assert scan_meta(self._META, RoleDirLayoutCheck(), path_index=[entry]) == []

    def test_other_role_tasks_do_not_count(self, scan_meta: ScanMeta) -> None:
        index = ["roles/db/tasks/main.yml", "roles/web/tasks/setup.yml"]
        assert len(scan_meta(self._META, RoleDirLayoutCheck(), path_index=index)) == 1

    def test_dependency_only_role(self, scan_meta: ScanMeta) -> None:
        content = "galaxy_info:\n  author: ops\ndependencies:\n  - common\n"
        assert scan_meta(content, RoleDirLayoutCheck()) == []

    def test_meta_outside_roles_directory(self, scan_meta: ScanMeta) -> None:
        assert scan_meta(self._META, RoleDirLayoutCheck(), path="meta/main.yml") == []
