"""Base service class with shared connection and infrastructure patterns."""

from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from pathlib import Path
from typing import Callable, TypeVar

from makelaarwatch.infrastructure.db import ensure_schema, get_connection
from makelaarwatch.infrastructure.observability import get_logger

ConnectionFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]
T = TypeVar("T")
ServiceT = TypeVar("ServiceT", bound="BaseService")


class BaseService:
    """Base class for read-side services over the SQLite store.

    Example usage:
        class MyService(BaseService):
            def count(self) -> int:
                return self._with_connection(
                    lambda conn: conn.execute("SELECT COUNT(*) FROM agents").fetchone()[0]
                )

        service = MyService.from_sqlite_path("/path/to/makelaarwatch.db")
    """

    def __init__(self, connection_factory: ConnectionFactory) -> None:
        self._connection_factory = connection_factory
        self._logger = get_logger(self.__class__.__module__)

    @classmethod
    def from_sqlite_path(cls: type[ServiceT], db_path: str | Path) -> ServiceT:
        """Create a service bound to a SQLite database path."""

        def connection_factory() -> AbstractContextManager[sqlite3.Connection]:
            return get_connection(db_path)

        return cls(connection_factory)

    def _with_connection(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn`` on a managed connection, creating the schema first."""
        with self._connection_factory() as conn:
            ensure_schema(conn)
            return fn(conn)
