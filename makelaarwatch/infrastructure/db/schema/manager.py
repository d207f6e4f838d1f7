from __future__ import annotations

from .migrations import SchemaMigrator
from .tables import SCHEMA_AGENTS_SQL, SCHEMA_LISTINGS_SQL, SCHEMA_SYNC_RUNS_SQL


def ensure_schema(conn) -> None:
    """Create the agent, listing and sync run tables if they are missing.

    Safe to call on every connection; all statements are idempotent.
    """

    migrator = SchemaMigrator(conn)
    conn.executescript(SCHEMA_AGENTS_SQL)
    conn.executescript(SCHEMA_LISTINGS_SQL)
    conn.executescript(SCHEMA_SYNC_RUNS_SQL)
    migrator.ensure_current_version()
    conn.commit()
