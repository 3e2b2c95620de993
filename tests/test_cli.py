"""Tests for the playscan CLI."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from playscan.cli import main

if TYPE_CHECKING:
    from pathlib import Path


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _scan(project: Path, *args: str) -> tuple[int, str]:
    runner = CliRunner()
    result = runner.invoke(main, ["scan", "--project", str(project), *args])
    return result.exit_code, result.output


def _add_unnamed_task(project: Path) -> None:
    (project / "roles" / "web" / "tasks" / "main.yml").write_text(
        "- ansible.builtin.debug:\n    msg: hello\n"
    )


# ---------------------------------------------------------------------------
# scan
# ---------------------------------------------------------------------------


class TestScan:
    def test_clean_project(self, tmp_project: Path) -> None:
        code, output = _scan(tmp_project, "--format", "porcelain")
        assert code == 0
        assert output.strip() == ""

    def test_issues_without_strict(self, tmp_project: Path) -> None:
        _add_unnamed_task(tmp_project)
        code, output = _scan(tmp_project, "--format", "porcelain")
        assert code == 0
        assert "roles/web/tasks/main.yml:1:playscan:task-has-name:" in output

    def test_issues_with_strict(self, tmp_project: Path) -> None:
        _add_unnamed_task(tmp_project)
        code, _ = _scan(tmp_project, "--format", "porcelain", "--strict")
        assert code == 1

    def test_json_output(self, tmp_project: Path) -> None:
        _add_unnamed_task(tmp_project)
        code, output = _scan(tmp_project, "--format", "json", "--workers", "2")
        assert code == 0
        data = json.loads(output)
        assert data["summary"]["files_analysed"] == 2
        assert data["summary"]["issues_by_rule"]["task-has-name"] == 1

    def test_rich_output(self, tmp_project: Path) -> None:
        code, output = _scan(tmp_project, "--format", "rich")
        assert code == 0
        assert "No issues found" in output

    def test_unknown_profile(self, tmp_project: Path) -> None:
        code, output = _scan(tmp_project, "--profile", "nope")
        assert code == 2
        assert "Unknown quality profile 'nope'" in output

    def test_invalid_config(self, tmp_project: Path) -> None:
        (tmp_project / ".playscan.yml").write_text("workers: -1\n")
        code, output = _scan(tmp_project)
        assert code == 2
        assert "workers" in output

    def test_config_disables_rule(self, tmp_project: Path) -> None:
        _add_unnamed_task(tmp_project)
        (tmp_project / ".playscan.yml").write_text("disable: [task-has-name]\n")
        code, output = _scan(tmp_project, "--format", "porcelain", "--strict")
        assert code == 0
        assert "task-has-name" not in output

    def test_excluded_files_are_not_scanned(self, tmp_project: Path) -> None:
        _add_unnamed_task(tmp_project)
        (tmp_project / ".playscan.yml").write_text("exclude: ['roles/*']\n")
        code, _ = _scan(tmp_project, "--format", "porcelain", "--strict")
        assert code == 0


# ---------------------------------------------------------------------------
# rules / profiles
# ---------------------------------------------------------------------------


_WIDE = {"COLUMNS": "200"}


class TestRules:
    def test_lists_all_rules(self) -> None:
        result = CliRunner().invoke(main, ["rules"], env=_WIDE)
        assert result.exit_code == 0
        assert "task-has-name" in result.output

    def test_opt_in_rule_not_in_default_profile(self) -> None:
        result = CliRunner().invoke(main, ["rules", "--profile", "default"], env=_WIDE)
        assert result.exit_code == 0
        assert "builtin-modules-only" not in result.output

    def test_unknown_profile(self) -> None:
        result = CliRunner().invoke(main, ["rules", "--profile", "nope"])
        assert result.exit_code == 2


def test_profiles() -> None:
    result = CliRunner().invoke(main, ["profiles"])
    assert result.exit_code == 0
    names = [line.split(":")[0] for line in result.output.splitlines()]
    assert names == ["default", "curated"]


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "playscan" in result.output
