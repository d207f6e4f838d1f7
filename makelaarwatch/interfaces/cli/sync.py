"""One-shot synchronization CLI for Makelaarwatch."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable

import click
from rich.console import Console
from rich.markup import escape

from makelaarwatch.app.config import ConfigurationError
from makelaarwatch.infrastructure.observability import get_metrics_summary
from makelaarwatch.services.sync import ReconcilePolicy
from makelaarwatch.services.sync_service import SyncService

from .context import cli_context_from_click

console = Console()

_OVERRIDE_KEYS = (
    "api_url",
    "reconcile_policy",
    "feature_detector",
    "max_retries",
    "page_size",
    "locality",
)


_SETTINGS_OPTIONS = (
    click.option("--db", "db_path", default=None, help="Path to the SQLite database."),
    click.option("--api-url", default=None, help="Feed base URL (overrides config and environment)."),
    click.option("--locality", default=None, help="Locality to search, e.g. amsterdam."),
    click.option(
        "--policy",
        "reconcile_policy",
        type=click.Choice([policy.value for policy in ReconcilePolicy]),
        default=None,
        help="Reconciliation policy (default diff_and_patch).",
    ),
    click.option(
        "--detector",
        "feature_detector",
        type=click.Choice(["tag", "path", "plot_area"]),
        default=None,
        help="How the garden flag is derived (default tag).",
    ),
    click.option("--max-retries", type=int, default=None, help="Retries per page before giving up."),
    click.option("--page-size", type=int, default=None, help="Records per page (1-25)."),
)


def settings_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Apply the options shared by the commands that run the sync engine."""
    for option in reversed(_SETTINGS_OPTIONS):
        fn = option(fn)
    return fn


def settings_overrides(options: dict[str, Any]) -> dict[str, Any]:
    return {key: options.get(key) for key in _OVERRIDE_KEYS}


@click.command(name="sync")
@settings_options
@click.option(
    "--cycles",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of cycles to run (the interval is slept between them).",
)
@click.option("--json-output", is_flag=True, help="Print the cycle report and metrics as JSON.")
def sync(db_path: str | None, cycles: int, json_output: bool, **options: Any) -> None:
    """Fetch the feed and reconcile it into the local database.

    Every configured query (by default all listings, then listings with a
    garden) is paged through, the results are merged and written to the
    database under the configured reconciliation policy.
    """
    from .run import run_until_signalled

    try:
        cli_context = cli_context_from_click(db_path)
        settings = cli_context.sync_settings(**settings_overrides(options))
        service = SyncService(settings)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        raise SystemExit(1)

    if not json_output:
        console.print(
            f"[bold]Syncing {settings.search_type}/{settings.locality}[/bold] "
            f"into {settings.db_path} (policy {settings.reconcile_policy.value})..."
        )
        with console.status("Running sync..."):
            state = asyncio.run(run_until_signalled(service, max_cycles=cycles))
    else:
        state = asyncio.run(run_until_signalled(service, max_cycles=cycles))

    report = state.last_report
    if json_output:
        payload = {
            "cycles_run": state.cycles_run,
            "cycles_failed": state.cycles_failed,
            "last_error": state.last_error,
            "report": report.to_row(settings.reconcile_policy.value) if report else None,
            "metrics": get_metrics_summary(),
        }
        click.echo(json.dumps(payload, indent=2, default=str))
    else:
        if report is not None:
            colour = "green" if report.status == "success" else "yellow"
            console.print(
                f"[{colour}]Sync {report.status}[/{colour}] (cycle #{report.cycle}): "
                f"pages={report.pages_fetched}, agents={report.agents_seen}, "
                f"listings={report.listings_seen}, mutations={report.stats.mutations}"
            )
            for err in report.errors:
                console.print(f"  - {err}")
        if state.last_error:
            console.print(f"[red]Error during sync: {state.last_error}[/red]")
        _print_metrics(get_metrics_summary())

    if state.cycles_failed:
        raise SystemExit(1)


def _print_metrics(summary: dict[str, Any]) -> None:
    counters = summary.get("counters", {})
    if not counters:
        return
    console.print("[bold]Metrics[/bold]")
    for name, series in sorted(counters.items()):
        for labels, value in sorted(series.items()):
            suffix = "" if labels == "default" else f"{{{labels}}}"
            console.print(f"  {name}{suffix} = {value:g}")
