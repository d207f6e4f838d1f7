"""Entry point for running the Makelaarwatch CLI.

This module defines a top-level Click group that aggregates all subcommands
defined in the ``makelaarwatch.interfaces.cli`` package. Executing
``python -m makelaarwatch.interfaces.cli`` will invoke this group.
"""

import logging

import click

from makelaarwatch.infrastructure.observability import configure_logging

from .leaderboard import leaderboard
from .run import run
from .runs import runs
from .sync import sync


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    default=None,
    help="Path to config.json (defaults to the one in the project root).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--log-json", is_flag=True, help="Write log records as JSON lines.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool, log_json: bool) -> None:
    """Makelaarwatch command-line interface."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    configure_logging(level=logging.DEBUG if verbose else logging.INFO, use_json=log_json)


cli.add_command(sync)
cli.add_command(run)
cli.add_command(leaderboard)
cli.add_command(runs)


if __name__ == "__main__":
    cli()
