"""Base repository class with shared database query helpers."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable
from typing import Any


class BaseRepository:
    """Base class for all repository implementations.

    Repositories never commit: transaction boundaries belong to the caller
    (the sync store commits once per reconciliation step).
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def _fetch_all_as_dicts(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> list[dict[str, Any]]:
        """Execute query and return all rows as dictionaries.

        Example:
            >>> rows = self._fetch_all_as_dicts(
            ...     "SELECT id, name FROM agents WHERE id > ?", (10,)
            ... )
            >>> rows[0]['name']
            'Alice Makelaardij'
        """
        cur = self.conn.execute(query, params or ())
        columns = [c[0] for c in cur.description]
        return [dict(zip(columns, row)) for row in cur.fetchall()]

    def _fetch_one_as_dict(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> dict[str, Any] | None:
        """Execute query and return first row as dictionary, or None."""
        cur = self.conn.execute(query, params or ())
        row = cur.fetchone()
        if not row:
            return None
        columns = [c[0] for c in cur.description]
        return dict(zip(columns, row))

    def _execute(
        self, query: str, params: tuple[Any, ...] | None = None
    ) -> sqlite3.Cursor:
        return self.conn.execute(query, params or ())

    def _delete_in(self, table: str, ids: Iterable[Any], *, chunk_size: int = 500) -> int:
        """Delete rows of ``table`` whose ``id`` is in ``ids``; returns rows removed.

        Ids are sent in chunks to stay under SQLite's bound-parameter limit.
        """
        pending = list(ids)
        removed = 0
        for start in range(0, len(pending), chunk_size):
            chunk = pending[start : start + chunk_size]
            placeholders = ",".join("?" * len(chunk))
            cur = self._execute(
                f"DELETE FROM {table} WHERE id IN ({placeholders})", tuple(chunk)
            )
            removed += cur.rowcount
        return removed
