"""Analysis orchestrator: drive one analysis run over a list of project files."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

from playscan.checks.base import FileContext
from playscan.engine.path_resolver import PathResolver
from playscan.engine.walker import walk, walk_role_meta
from playscan.model.classifier import FileKind, classify
from playscan.model.parser import parse_playbook, parse_role_meta

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence
    from collections.abc import Set as AbstractSet

    from playscan.checks.base import Check, Finding
    from playscan.engine.catalog import RuleCatalog
    from playscan.engine.reporting import Reporter
    from playscan.model.nodes import PlaybookFile, RoleMeta

logger = logging.getLogger(__name__)

DEFAULT_REPOSITORY_KEY = "playscan"


class SourceFile(Protocol):
    """A project file as seen by the orchestrator."""

    @property
    def relative_path(self) -> str: ...

    def read_text(self) -> str: ...


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class FileStatus(Enum):
    ANALYSED = "analysed"
    SKIPPED = "skipped"
    UNREADABLE = "unreadable"
    FAILED = "failed"


@dataclass
class FileOutcome:
    """Result of analysing one file, before rule keys are mapped."""

    path: str
    status: FileStatus
    findings: list[Finding] = field(default_factory=list)


@dataclass
class RunSummary:
    """Counters of an analysis run."""

    files_analysed: int = 0
    files_skipped: int = 0
    files_unreadable: int = 0
    files_failed: int = 0
    findings_reported: int = 0
    findings_dropped: int = 0
    elapsed_ms: float = 0.0

    def record(self, status: FileStatus) -> None:
        if status is FileStatus.ANALYSED:
            self.files_analysed += 1
        elif status is FileStatus.SKIPPED:
            self.files_skipped += 1
        elif status is FileStatus.UNREADABLE:
            self.files_unreadable += 1
        else:
            self.files_failed += 1


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class Orchestrator:
    """Reads, classifies, parses and checks each file, then forwards findings.

    The catalog and the check instances are shared read-only across
    files; everything mutable during a file's analysis is created for
    that file alone.
    """

    def __init__(
        self,
        catalog: RuleCatalog,
        reporter: Reporter,
        *,
        parser: Callable[[str, str], PlaybookFile] = parse_playbook,
        role_meta_parser: Callable[[str, str], RoleMeta] = parse_role_meta,
        classifier: Callable[[str], FileKind] = classify,
        repository_key: str = DEFAULT_REPOSITORY_KEY,
    ) -> None:
        self._catalog = catalog
        self._reporter = reporter
        self._parser = parser
        self._role_meta_parser = role_meta_parser
        self._classifier = classifier
        self._repository_key = repository_key

    # -- public API --------------------------------------------------------

    def run(
        self,
        files: Iterable[SourceFile],
        active_checks: Sequence[Check],
        path_index: AbstractSet[str],
        *,
        workers: int = 1,
    ) -> RunSummary:
        """Analyse *files* with *active_checks* and report every finding.

        Parameters
        ----------
        files:
            Project files to analyse, each with a project-relative path.
        active_checks:
            Check instances, in the order they are invoked at each node.
        path_index:
            Project-relative paths of every file in the project, used to
            resolve include/import references.
        workers:
            Number of threads analysing files concurrently.  Findings are
            always forwarded to the reporter from the calling thread.
        """
        start = time.monotonic()
        summary = RunSummary()
        key_map = self._build_key_map(active_checks)
        checks = [check for check in active_checks if check.key in key_map]

        for outcome in self._outcomes(files, checks, path_index, workers):
            summary.record(outcome.status)
            for finding in outcome.findings:
                rule_id = key_map.get(finding.rule_key)
                if rule_id is None:
                    logger.debug(
                        "Discarding finding for unmapped rule '%s' in %s",
                        finding.rule_key,
                        outcome.path,
                    )
                    summary.findings_dropped += 1
                    continue
                self._reporter.report(outcome.path, rule_id, finding.message, finding.line)
                summary.findings_reported += 1

        summary.elapsed_ms = (time.monotonic() - start) * 1000
        logger.info(
            "Analysed %d file(s), skipped %d, %d finding(s) in %.0f ms",
            summary.files_analysed,
            summary.files_skipped,
            summary.findings_reported,
            summary.elapsed_ms,
        )
        return summary

    def analyse_file(
        self,
        source: SourceFile,
        checks: Sequence[Check],
        path_index: AbstractSet[str],
    ) -> FileOutcome:
        """Analyse a single file; never raises for per-file problems."""
        path = source.relative_path.replace("\\", "/")
        try:
            return self._analyse(source, path, checks, path_index)
        except Exception:
            logger.warning("Analysis of %s failed; continuing", path, exc_info=True)
            return FileOutcome(path, FileStatus.FAILED)

    # -- internals ---------------------------------------------------------

    def _build_key_map(self, checks: Sequence[Check]) -> dict[str, str]:
        key_map: dict[str, str] = {}
        for check in checks:
            if check.key in self._catalog:
                key_map[check.key] = f"{self._repository_key}:{check.key}"
            else:
                logger.warning(
                    "Check %s declares rule '%s' with no catalog entry; its findings are dropped",
                    type(check).__name__,
                    check.key,
                )
        return key_map

    def _outcomes(
        self,
        files: Iterable[SourceFile],
        checks: Sequence[Check],
        path_index: AbstractSet[str],
        workers: int,
    ) -> Iterator[FileOutcome]:
        if workers <= 1:
            for source in files:
                yield self.analyse_file(source, checks, path_index)
            return
        with ThreadPoolExecutor(max_workers=workers) as pool:
            yield from pool.map(
                lambda source: self.analyse_file(source, checks, path_index), files
            )

    def _analyse(
        self,
        source: SourceFile,
        path: str,
        checks: Sequence[Check],
        path_index: AbstractSet[str],
    ) -> FileOutcome:
        try:
            content = source.read_text()
        except OSError as exc:
            logger.debug("Skipping unreadable file %s: %s", path, exc)
            return FileOutcome(path, FileStatus.UNREADABLE)

        kind = self._classifier(path)
        if kind is FileKind.SKIPPED:
            logger.debug("Skipping %s: not a playbook or role metadata file", path)
            return FileOutcome(path, FileStatus.SKIPPED)

        if kind is FileKind.ROLE_META:
            meta = self._role_meta_parser(path, content)
            file_context = FileContext(path, content, PathResolver(path, path_index))
            findings = walk_role_meta(meta, checks, file_context)
            return FileOutcome(path, FileStatus.ANALYSED, findings)

        playbook = self._parser(path, content)
        if not playbook.plays and playbook.parse_error is None:
            logger.debug("Skipping %s: no plays found", path)
            return FileOutcome(path, FileStatus.SKIPPED)
        file_context = FileContext(path, content, PathResolver(path, path_index))
        return FileOutcome(path, FileStatus.ANALYSED, walk(playbook, checks, file_context))
