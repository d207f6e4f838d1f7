"""Shared helpers for composing CLI command contexts.

This module centralises common CLI wiring such as resolving the database path
and the sync settings from ``config.json`` with command-line overrides.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, ContextManager

import click

from makelaarwatch.app.config import SyncSettings, load_settings
from makelaarwatch.infrastructure.db import get_connection, get_path_config
from makelaarwatch.services.history import SyncHistoryService
from makelaarwatch.services.leaderboard import LeaderboardService


@dataclass(frozen=True)
class CLIContext:
    """Container for CLI dependencies and configuration paths."""

    db_path: Path
    config_path: Path | None
    connection_factory: Callable[[], ContextManager[sqlite3.Connection]]

    def leaderboard_service(self) -> LeaderboardService:
        return LeaderboardService(self.connection_factory)

    def history_service(self) -> SyncHistoryService:
        return SyncHistoryService(self.connection_factory)

    def sync_settings(self, **overrides: Any) -> SyncSettings:
        """Load sync settings; ``db_path`` always follows this context."""
        return load_settings(self.config_path, db_path=self.db_path, **overrides)


def build_cli_context(
    db_path: str | Path | None = None, config_path: str | Path | None = None
) -> CLIContext:
    """Build the CLI context with the resolved database path and connection factory."""

    resolved_config = Path(config_path).expanduser() if config_path is not None else None
    resolved_db_path = (
        Path(db_path).expanduser()
        if db_path is not None
        else get_path_config(resolved_config)["db_path"]
    )

    def connection_factory() -> ContextManager[sqlite3.Connection]:
        return get_connection(resolved_db_path)

    return CLIContext(
        db_path=resolved_db_path,
        config_path=resolved_config,
        connection_factory=connection_factory,
    )


def cli_context_from_click(db_path: str | None) -> CLIContext:
    """Build a :class:`CLIContext` using the ``--config`` given to the group."""
    ctx = click.get_current_context()
    config_path = (ctx.obj or {}).get("config_path")
    return build_cli_context(db_path, config_path)
