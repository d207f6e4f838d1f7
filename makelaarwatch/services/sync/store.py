"""The store contract the reconciler writes through, and its SQLite implementation."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from enum import Enum
from pathlib import Path
from typing import Any, Protocol, Union

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.infrastructure.db import ensure_schema, get_connection
from makelaarwatch.infrastructure.db.repositories import (
    AgentRepository,
    ListingRepository,
    SyncRunRepository,
)

from .results import Failure, FailureKind, Result, Success

Entity = Union[Agent, Listing]
EntityId = Union[int, str]


class Collection(str, Enum):
    AGENTS = "agents"
    LISTINGS = "listings"


class StoreError(Exception):
    """Raised by a store when a read or write fails."""


class SyncStore(Protocol):
    def find_by_id(self, collection: Collection, entity_id: EntityId) -> Entity | None: ...

    def add(self, collection: Collection, entity: Entity) -> None: ...

    def update(self, collection: Collection, entity: Entity) -> None: ...

    def remove_many(self, collection: Collection, ids: Iterable[EntityId]) -> int: ...

    def all_ids(self, collection: Collection) -> set[EntityId]: ...

    def commit(self) -> Result[None]: ...

    def rollback(self) -> None: ...

    def record_run(self, row: dict[str, Any]) -> None: ...


StoreFactory = Callable[[], AbstractContextManager[SyncStore]]


class SqliteSyncStore:
    """:class:`SyncStore` backed by one open SQLite connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._repos = {
            Collection.AGENTS: AgentRepository(conn),
            Collection.LISTINGS: ListingRepository(conn),
        }
        self._runs = SyncRunRepository(conn)

    def _repo(self, collection: Collection):
        return self._repos[Collection(collection)]

    def find_by_id(self, collection: Collection, entity_id: EntityId) -> Entity | None:
        try:
            return self._repo(collection).get(entity_id)
        except sqlite3.Error as exc:
            raise StoreError(f"find {collection.value}/{entity_id}: {exc}") from exc

    def add(self, collection: Collection, entity: Entity) -> None:
        try:
            self._repo(collection).insert(entity)
        except sqlite3.Error as exc:
            raise StoreError(f"add {collection.value}/{entity.id}: {exc}") from exc

    def update(self, collection: Collection, entity: Entity) -> None:
        try:
            self._repo(collection).update(entity)
        except sqlite3.Error as exc:
            raise StoreError(f"update {collection.value}/{entity.id}: {exc}") from exc

    def remove_many(self, collection: Collection, ids: Iterable[EntityId]) -> int:
        try:
            return self._repo(collection).delete_many(ids)
        except sqlite3.Error as exc:
            raise StoreError(f"remove {collection.value}: {exc}") from exc

    def all_ids(self, collection: Collection) -> set[EntityId]:
        try:
            return set(self._repo(collection).all_ids())
        except sqlite3.Error as exc:
            raise StoreError(f"list {collection.value}: {exc}") from exc

    def commit(self) -> Result[None]:
        try:
            self.conn.commit()
        except sqlite3.Error as exc:
            return Failure(FailureKind.STORE, f"commit failed: {exc}")
        return Success(None)

    def rollback(self) -> None:
        self.conn.rollback()

    def record_run(self, row: dict[str, Any]) -> None:
        try:
            self._runs.insert(row)
            self.conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(f"record sync run: {exc}") from exc


def sqlite_store_factory(db_path: str | Path) -> StoreFactory:
    """Return a factory opening a fresh connection (and store) per call."""

    @contextmanager
    def _open() -> Iterator[SyncStore]:
        with get_connection(db_path) as conn:
            ensure_schema(conn)
            yield SqliteSyncStore(conn)

    return _open


__all__ = [
    "Collection",
    "Entity",
    "EntityId",
    "SqliteSyncStore",
    "StoreError",
    "StoreFactory",
    "SyncStore",
    "sqlite_store_factory",
]
