"""Tests for playscan.engine.reporting: sink and output formats."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from playscan.engine.orchestrator import RunSummary
from playscan.engine.reporting import (
    CollectingReporter,
    ReportedIssue,
    ScanResult,
    format_json,
    format_porcelain,
    format_rich,
)

if TYPE_CHECKING:
    from playscan.engine.catalog import RuleCatalog


def _result(*issues: ReportedIssue) -> ScanResult:
    summary = RunSummary(files_analysed=2, files_skipped=1, elapsed_ms=120.0)
    return ScanResult(issues=list(issues), summary=summary, profile="default", rules_evaluated=5)


_NAME = ReportedIssue("site.yml", "playscan:task-has-name", "Add a 'name' to this task.", 4)
_YAML = ReportedIssue("roles/a/tasks/main.yml", "playscan:valid-yaml", "Fix syntax.", None)


def test_collecting_reporter_keeps_order() -> None:
    reporter = CollectingReporter()
    reporter.report("b.yml", "playscan:x", "second", 2)
    reporter.report("a.yml", "playscan:y", "first", None)
    assert [issue.path for issue in reporter.issues] == ["b.yml", "a.yml"]
    assert reporter.issues[1].rule_key == "y"


def test_sorted_issues() -> None:
    assert _result(_NAME, _YAML).sorted_issues() == [_YAML, _NAME]


class TestFormatRich:
    def test_clean(self) -> None:
        text = format_rich(_result())
        assert "Profile: default (5 rules)" in text
        assert "Files: 2 analysed, 1 skipped" in text
        assert "✓ No issues found (0.1s)" in text

    def test_grouped_by_file(self, catalog: RuleCatalog) -> None:
        text = format_rich(_result(_NAME, _YAML), catalog)
        lines = text.splitlines()
        assert "roles/a/tasks/main.yml" in lines
        assert "  ✗ -  valid-yaml  Fix syntax. [MAJOR]" in lines
        assert "  ✗ 4  task-has-name  Add a 'name' to this task. [MINOR]" in lines
        assert lines[-1] == "2 issues found (0.1s)"

    def test_failures_are_shown(self) -> None:
        result = _result()
        result.summary.files_failed = 1
        assert "Unreadable: 0, failed: 1" in format_rich(result)


def test_format_json(catalog: RuleCatalog) -> None:
    data = json.loads(format_json(_result(_NAME, _YAML), catalog))
    assert [issue["rule_id"] for issue in data["issues"]] == [
        "playscan:valid-yaml",
        "playscan:task-has-name",
    ]
    assert data["issues"][0]["line"] is None
    assert data["issues"][0]["type"] == "BUG"
    assert data["summary"]["issues_by_rule"] == {"task-has-name": 1, "valid-yaml": 1}
    assert data["summary"]["files_analysed"] == 2


def test_format_porcelain() -> None:
    assert format_porcelain(_result(_NAME, _YAML)).splitlines() == [
        "roles/a/tasks/main.yml::playscan:valid-yaml:Fix syntax.",
        "site.yml:4:playscan:task-has-name:Add a 'name' to this task.",
    ]
    assert format_porcelain(_result()) == ""
