"""Playscan CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from playscan import __version__


@click.group()
@click.version_option(version=__version__, prog_name="playscan")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Playscan - rule-based static analysis for Ansible playbooks and roles."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich if TTY, porcelain if piped).",
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Exit 1 if issues found.",
)
@click.option("--profile", default=None, help="Quality profile (overrides config).")
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of files analysed in parallel (overrides config).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: .playscan.yml in the project root).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def scan(
    *,
    fmt: str | None,
    strict: bool,
    profile: str | None,
    workers: int | None,
    config_path: Path | None,
    project: Path | None,
) -> None:
    """Scan the playbooks and roles of a project.

    Exit codes: 0 = clean or issues without --strict,
    1 = issues with --strict, 2 = configuration error.
    """
    from playscan.checks import create_checks
    from playscan.config import ConfigError, load_config
    from playscan.engine.catalog import CatalogError, RuleCatalog, UnknownProfileError
    from playscan.engine.orchestrator import Orchestrator
    from playscan.engine.reporting import (
        CollectingReporter,
        ScanResult,
        format_json,
        format_porcelain,
        format_rich,
    )
    from playscan.files import collect_project

    project_root = project or Path.cwd()

    # Resolve output format: explicit flag > TTY detection.
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"

    # Everything that can fail on configuration fails before any file is read.
    try:
        config = load_config(project_root, config_path).with_overrides(
            profile=profile, workers=workers
        )
        catalog = RuleCatalog.build()
        keys = config.active_rule_keys(catalog)
    except (ConfigError, CatalogError, UnknownProfileError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    checks = create_checks(keys, config.parameters)
    listing = collect_project(project_root, config.exclude)

    reporter = CollectingReporter()
    summary = Orchestrator(catalog, reporter).run(
        listing.files, checks, listing.path_index, workers=config.workers
    )
    result = ScanResult(
        issues=reporter.issues,
        summary=summary,
        profile=config.profile,
        rules_evaluated=len(checks),
    )

    if fmt == "rich":
        output = format_rich(result, catalog)
    elif fmt == "json":
        output = format_json(result, catalog)
    else:
        output = format_porcelain(result)
    if output:
        click.echo(output)

    if strict and result.issues:
        sys.exit(1)


@main.command()
@click.option("--profile", default=None, help="Only list rules active in this profile.")
def rules(*, profile: str | None) -> None:
    """List the rules known to playscan."""
    from rich.console import Console
    from rich.table import Table

    from playscan.engine.catalog import RuleCatalog, UnknownProfileError

    catalog = RuleCatalog.build()
    try:
        keys = catalog.active_rule_keys(profile) if profile else catalog.rule_keys
    except UnknownProfileError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    title = f"Rules ({profile})" if profile else "Rules"
    table = Table(title=title)
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Severity")
    table.add_column("Type")
    table.add_column("Tags", style="dim")
    for key in keys:
        meta = catalog.metadata_for(key)
        table.add_row(
            meta.key,
            meta.name,
            meta.severity.name,
            meta.type.value,
            ", ".join(sorted(meta.tags)),
        )

    console = Console()
    console.print(table)
    console.print(f"{len(keys)} rules")


@main.command()
def profiles() -> None:
    """List the built-in quality profiles."""
    from playscan.engine.catalog import RuleCatalog

    catalog = RuleCatalog.build()
    for name in catalog.profiles:
        click.echo(f"{name}: {len(catalog.active_rule_keys(name))} rules")
