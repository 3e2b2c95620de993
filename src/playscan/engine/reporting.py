"""Reporting sink contract and output formatters for scan results."""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from playscan.engine.catalog import RuleCatalog
    from playscan.engine.orchestrator import RunSummary


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------


class Reporter(Protocol):
    """Receives every resolved finding of a run, on the run's calling thread."""

    def report(self, path: str, rule_id: str, message: str, line: int | None) -> None: ...


@dataclass(frozen=True)
class ReportedIssue:
    """A finding after its rule key was mapped to a host rule id."""

    path: str
    rule_id: str
    message: str
    line: int | None = None

    @property
    def rule_key(self) -> str:
        """The rule key without the repository prefix."""
        return self.rule_id.split(":", 1)[-1]


@dataclass
class CollectingReporter:
    """Reporter that keeps issues in memory, in the order they were reported."""

    issues: list[ReportedIssue] = field(default_factory=list)

    def report(self, path: str, rule_id: str, message: str, line: int | None) -> None:
        self.issues.append(ReportedIssue(path, rule_id, message, line))


@dataclass
class ScanResult:
    """Everything a formatter needs about one scan."""

    issues: list[ReportedIssue]
    summary: RunSummary
    profile: str
    rules_evaluated: int = 0

    def sorted_issues(self) -> list[ReportedIssue]:
        return sorted(self.issues, key=lambda i: (i.path, i.line or 0, i.rule_id, i.message))


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def format_rich(result: ScanResult, catalog: RuleCatalog | None = None) -> str:
    """Format a ScanResult as human-readable text grouped by file.

    Example output::

        Profile: default (56 rules)
        Files: 4 analysed, 1 skipped

        site.yml
          ✗ 3  task-has-name  Name this task. [MINOR]

        1 issue found (0.1s)
    """
    summary = result.summary
    lines: list[str] = [
        f"Profile: {result.profile} ({result.rules_evaluated} rules)",
        f"Files: {summary.files_analysed} analysed, {summary.files_skipped} skipped",
    ]
    if summary.files_unreadable or summary.files_failed:
        lines.append(
            f"Unreadable: {summary.files_unreadable}, failed: {summary.files_failed}"
        )
    lines.append("")

    elapsed_str = f"{summary.elapsed_ms / 1000:.1f}s"
    issues = result.sorted_issues()
    if not issues:
        lines.append(f"✓ No issues found ({elapsed_str})")
        return "\n".join(lines)

    current_path: str | None = None
    for issue in issues:
        if issue.path != current_path:
            if current_path is not None:
                lines.append("")
            lines.append(issue.path)
            current_path = issue.path
        line_no = str(issue.line) if issue.line is not None else "-"
        suffix = ""
        if catalog is not None:
            suffix = f" [{catalog.metadata_for(issue.rule_key).severity.name}]"
        lines.append(f"  ✗ {line_no}  {issue.rule_key}  {issue.message}{suffix}")

    lines.append("")
    noun = "issue" if len(issues) == 1 else "issues"
    lines.append(f"{len(issues)} {noun} found ({elapsed_str})")
    return "\n".join(lines)


def format_json(result: ScanResult, catalog: RuleCatalog | None = None) -> str:
    """Format a ScanResult as JSON with an ``issues`` array and a ``summary`` object."""
    issues_list: list[dict[str, object]] = []
    for issue in result.sorted_issues():
        entry: dict[str, object] = {
            "path": issue.path,
            "line": issue.line,
            "rule_id": issue.rule_id,
            "message": issue.message,
        }
        if catalog is not None:
            metadata = catalog.metadata_for(issue.rule_key)
            entry["severity"] = metadata.severity.name
            entry["type"] = metadata.type.value
        issues_list.append(entry)

    summary = result.summary
    by_rule = Counter(issue.rule_key for issue in result.issues)
    output: dict[str, object] = {
        "issues": issues_list,
        "summary": {
            "profile": result.profile,
            "rules_evaluated": result.rules_evaluated,
            "issues_count": len(result.issues),
            "issues_by_rule": dict(sorted(by_rule.items())),
            "files_analysed": summary.files_analysed,
            "files_skipped": summary.files_skipped,
            "files_unreadable": summary.files_unreadable,
            "files_failed": summary.files_failed,
            "findings_dropped": summary.findings_dropped,
            "elapsed_ms": summary.elapsed_ms,
        },
    }
    return json.dumps(output, indent=2)


def format_porcelain(result: ScanResult) -> str:
    """Format a ScanResult as one ``path:line:rule_id:message`` line per issue.

    A missing line number is an empty field.  Returns an empty string
    when there are no issues.
    """
    lines: list[str] = []
    for issue in result.sorted_issues():
        line_no = str(issue.line) if issue.line is not None else ""
        lines.append(f"{issue.path}:{line_no}:{issue.rule_id}:{issue.message}")
    return "\n".join(lines)
