"""Analysis engine: rule catalog, orchestrator, traversal and path resolution."""

from playscan.engine.catalog import (
    CatalogError,
    RuleCatalog,
    RuleMetadata,
    RuleType,
    Severity,
    UnknownProfileError,
    rule_key_to_name,
)
from playscan.engine.orchestrator import Orchestrator, RunSummary
from playscan.engine.path_resolver import PathResolver, normalize_path
from playscan.engine.reporting import CollectingReporter, ReportedIssue, Reporter, ScanResult
from playscan.engine.walker import walk, walk_role_meta

__all__ = [
    "CatalogError",
    "CollectingReporter",
    "Orchestrator",
    "PathResolver",
    "ReportedIssue",
    "Reporter",
    "RuleCatalog",
    "RuleMetadata",
    "RuleType",
    "RunSummary",
    "ScanResult",
    "Severity",
    "UnknownProfileError",
    "normalize_path",
    "rule_key_to_name",
    "walk",
    "walk_role_meta",
]
