"""Long-running sync loop, stopped with Ctrl-C or SIGTERM."""

from __future__ import annotations

import asyncio
import signal

import click
from rich.console import Console
from rich.markup import escape

from makelaarwatch.app.config import ConfigurationError
from makelaarwatch.services.sync import CancellationToken, SchedulerState
from makelaarwatch.services.sync_service import SyncService

from .context import cli_context_from_click
from .sync import settings_options, settings_overrides

console = Console()


async def run_until_signalled(
    service: SyncService, *, max_cycles: int | None = None
) -> SchedulerState:
    """Run ``service`` with SIGINT/SIGTERM wired to its cancellation token."""
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread.
            continue
        installed.append(sig)
    try:
        return await service.run(token, max_cycles=max_cycles)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


@click.command()
@settings_options
@click.option(
    "--interval",
    "interval_seconds",
    type=float,
    default=None,
    help="Seconds to sleep between cycles (default from config, 3600).",
)
def run(db_path: str | None, interval_seconds: float | None, **options: object) -> None:
    """Sync now, then keep syncing on an interval until interrupted."""
    try:
        cli_context = cli_context_from_click(db_path)
        settings = cli_context.sync_settings(
            interval_seconds=interval_seconds, **settings_overrides(options)
        )
        service = SyncService(settings)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        raise SystemExit(1)

    console.print(
        f"[bold]Syncing every {settings.interval_seconds:.0f}s[/bold] into {settings.db_path} "
        "(Ctrl-C to stop)"
    )
    state = asyncio.run(run_until_signalled(service))
    console.print(
        f"Stopped after {state.cycles_run} cycle(s), {state.cycles_failed} failed."
    )
