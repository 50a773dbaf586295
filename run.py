#!/usr/bin/env python3
"""
run.py – CLI entry-point for the test case migrator.

Usage:
    python run.py
    python run.py --source-project ProjA --target-project ProjB --user-map users.json
"""

from __future__ import annotations

import argparse
import logging
import sys
import time

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ado_client import AdoDestinationProvider, AdoSourceProvider
from config import Settings
from errors import ConfigurationError
from models import MigrationReport, RunSummary
from orchestrator import MigrationOrchestrator
from status import QueueStatusSink

console = Console()

POLL_INTERVAL = 0.25

# ── Logging ─────────────────────────────────────────────────────────────

def _configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )


# ── Pretty output helpers ──────────────────────────────────────────────

def _report_row(table: Table, name: str, report: MigrationReport | None) -> None:
    if report is None:
        table.add_row(name, "—", "—", "—", "—", "skipped")
        return
    if report.error:
        outcome = "[red]aborted[/red]"
    elif report.cancelled:
        outcome = "cancelled"
    else:
        outcome = "done"
    table.add_row(
        name,
        str(report.attempted),
        str(report.succeeded),
        str(report.failed),
        f"{report.elapsed_seconds:.1f}s",
        outcome,
    )


def _show_results(summary: RunSummary) -> None:
    table = Table(title="Migration Summary", show_lines=True)
    table.add_column("Phase", style="bold")
    table.add_column("Attempted", justify="right")
    table.add_column("Succeeded", justify="right", style="green")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Time", justify="right")
    table.add_column("Status")
    _report_row(table, "Shared Steps", summary.shared_steps)
    _report_row(table, "Test Cases", summary.test_cases)
    console.print(table)

    failures = [
        (report.kind.value, failure)
        for report in (summary.shared_steps, summary.test_cases)
        if report is not None
        for failure in report.failures
    ]
    if failures:
        fail_table = Table(title="Failed Items", show_lines=True)
        fail_table.add_column("Type", width=14)
        fail_table.add_column("Source ID", justify="right")
        fail_table.add_column("Title")
        fail_table.add_column("Error", style="red")
        for kind, failure in failures:
            fail_table.add_row(kind, str(failure.source_id), failure.title, failure.error)
        console.print(fail_table)

    if summary.test_cases is not None and summary.test_cases.unresolved_references:
        console.print(
            f"[yellow]{len(summary.test_cases.unresolved_references)}[/] shared step "
            "references replaced by placeholder steps."
        )
    if summary.error:
        console.print(f"\n[red bold]Run aborted:[/] {summary.error}")


# ── Core orchestration ─────────────────────────────────────────────────

def run(source_project: str, target_project: str, user_map: dict[str, str]) -> RunSummary:
    """Migrate shared steps, then test cases, streaming status to the console."""
    source = AdoSourceProvider(
        Settings.SOURCE_ORG_URL, Settings.SOURCE_PAT, timeout=Settings.REQUEST_TIMEOUT
    )
    destination = AdoDestinationProvider(
        Settings.TARGET_ORG_URL,
        Settings.TARGET_PAT,
        timeout=Settings.REQUEST_TIMEOUT,
        bypass_rules=Settings.BYPASS_RULES,
        reflected_field=Settings.REFLECTED_FIELD,
    )
    sink = QueueStatusSink()
    orchestrator = MigrationOrchestrator(
        source,
        destination,
        user_map=user_map,
        status_sink=sink,
        reflected_base_uri=Settings.REFLECTED_BASE_URI,
    )

    console.rule(f"[bold blue]{source_project}  →  {target_project}")
    future = orchestrator.start(source_project, target_project)
    with console.status("Starting migration…") as status:
        try:
            while not future.done():
                for message in sink.drain():
                    status.update(message)
                time.sleep(POLL_INTERVAL)
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling after the current item…[/]")
            orchestrator.cancel()
            summary = future.result()
        else:
            summary = future.result()
    for message in sink.drain():
        console.print(message)

    _show_results(summary)
    return summary


# ── CLI ─────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        prog="tc-migrator",
        description="Migrate shared steps and test cases between Azure DevOps projects.",
    )
    parser.add_argument(
        "--source-project",
        default=Settings.SOURCE_PROJECT,
        help="Source team project (default: $SOURCE_PROJECT).",
    )
    parser.add_argument(
        "--target-project",
        default=Settings.TARGET_PROJECT,
        help="Target team project (default: $TARGET_PROJECT).",
    )
    parser.add_argument(
        "--user-map",
        default=Settings.USER_MAP_FILE,
        help="JSON file mapping source display names to target display names.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug-level logging.",
    )
    args = parser.parse_args()

    _configure_logging(args.verbose)

    console.print(
        Panel(
            "[bold white]Test Case Migrator[/]  –  Shared Steps & Test Cases",
            border_style="bright_magenta",
        )
    )

    Settings.SOURCE_PROJECT = args.source_project
    Settings.TARGET_PROJECT = args.target_project
    try:
        Settings.validate()
        user_map = Settings.load_user_map(args.user_map)
    except ConfigurationError as exc:
        console.print(f"[red bold]Configuration error:[/] {exc}")
        sys.exit(2)

    try:
        summary = run(args.source_project, args.target_project, user_map)
    except Exception as exc:
        console.print(f"\n[red bold]Error:[/] {exc}")
        logging.getLogger("tc-migrator").debug("Traceback:", exc_info=True)
        sys.exit(1)

    if summary.error:
        sys.exit(1)
    if summary.cancelled:
        sys.exit(130)


if __name__ == "__main__":
    main()
