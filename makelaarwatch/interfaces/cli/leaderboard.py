"""Leaderboard of agents by number of listings."""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from makelaarwatch.infrastructure.db import ConfigurationError

from .context import cli_context_from_click

console = Console()


@click.command()
@click.option("--db", "db_path", default=None, help="Path to the SQLite database.")
@click.option(
    "--limit", type=click.IntRange(min=1), default=10, show_default=True, help="Number of agents to show."
)
@click.option(
    "--garden",
    "feature_only",
    is_flag=True,
    help="Only count listings flagged with the query feature (garden by default).",
)
@click.option("--json-output", is_flag=True, help="Output the leaderboard as JSON.")
def leaderboard(db_path: str | None, limit: int, feature_only: bool, json_output: bool) -> None:
    """Show the agents with the most listings."""
    try:
        cli_context = cli_context_from_click(db_path)
        entries = cli_context.leaderboard_service().top_agents(limit, feature_only=feature_only)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        raise SystemExit(1)

    if json_output:
        click.echo(json.dumps([entry.model_dump(mode="json") for entry in entries], indent=2))
        return

    if not entries:
        console.print("[yellow]No agents found. Run 'makelaarwatch sync' first.[/yellow]")
        return

    title = "Top agents (garden listings)" if feature_only else "Top agents"
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Agent")
    table.add_column("Id", justify="right")
    table.add_column("Listings", justify="right")
    for entry in entries:
        table.add_row(
            str(entry.rank),
            entry.agent_name or "(unknown)",
            str(entry.agent_id),
            str(entry.listing_count),
        )
    console.print(table)
