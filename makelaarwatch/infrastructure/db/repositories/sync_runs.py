from __future__ import annotations

from typing import Any

from .base import BaseRepository


class SyncRunRepository(BaseRepository):
    """Bookkeeping for finished sync cycles (one row per cycle)."""

    _COLUMNS = (
        "cycle",
        "started_at",
        "finished_at",
        "status",
        "policy",
        "partial",
        "pages_fetched",
        "agents_seen",
        "listings_seen",
        "agents_added",
        "agents_updated",
        "agents_removed",
        "listings_added",
        "listings_updated",
        "listings_removed",
        "notes",
    )

    def insert(self, row: dict[str, Any]) -> int:
        """Insert the known columns present in ``row``; absent ones take their defaults."""
        columns = [col for col in self._COLUMNS if col in row]
        placeholders = ", ".join("?" * len(columns))
        cur = self._execute(
            f"INSERT INTO sync_runs ({', '.join(columns)}) VALUES ({placeholders})",
            tuple(row[col] for col in columns),
        )
        return cur.lastrowid or 0

    def list_recent(self, limit: int = 10) -> list[dict[str, Any]]:
        return self._fetch_all_as_dicts(
            f"SELECT id, {', '.join(self._COLUMNS)} FROM sync_runs ORDER BY id DESC LIMIT ?",
            (limit,),
        )
