"""History of recent sync cycles."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from makelaarwatch.infrastructure.db import ConfigurationError

from .context import cli_context_from_click

console = Console()

_STATUS_STYLES = {"success": "green", "partial": "yellow", "failed": "red"}


@click.command()
@click.option("--db", "db_path", default=None, help="Path to the SQLite database.")
@click.option(
    "--limit", type=click.IntRange(min=1), default=10, show_default=True, help="Number of cycles to show."
)
@click.option("--json-output", is_flag=True, help="Output the runs as JSON.")
def runs(db_path: str | None, limit: int, json_output: bool) -> None:
    """Show the most recent sync cycles and what they changed."""
    try:
        cli_context = cli_context_from_click(db_path)
        recent = cli_context.history_service().recent_runs(limit)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps([run.model_dump(mode="json") for run in recent], indent=2))
        return

    if not recent:
        console.print("[yellow]No sync runs recorded yet.[/yellow]")
        return

    table = Table(title="Recent sync runs")
    table.add_column("Cycle", justify="right")
    table.add_column("Started")
    table.add_column("Status")
    table.add_column("Listings", justify="right")
    table.add_column("Mutations", justify="right")
    for run in recent:
        style = _STATUS_STYLES.get(run.status or "", "white")
        table.add_row(
            str(run.cycle) if run.cycle is not None else "-",
            run.started_at,
            f"[{style}]{run.status or '-'}[/{style}]",
            str(run.listings_seen),
            str(run.mutations),
        )
    console.print(table)
    for run in recent:
        if run.notes:
            console.print(f"  cycle {run.cycle}: {escape(run.notes)}")
