from __future__ import annotations

from ..connection import iso_utcnow
from .tables import SCHEMA_VERSION_SQL


# Current schema version - increment when making structural changes.
CURRENT_SCHEMA_VERSION = 1


class SchemaMigrator:
    """Tracks the schema version in the single-row ``schema_version`` table."""

    def __init__(self, conn) -> None:
        self.conn = conn

    def ensure_version_table(self) -> None:
        """Create the schema_version table if it does not exist."""
        self.conn.executescript(SCHEMA_VERSION_SQL)

    def get_version(self) -> int | None:
        """Return the current schema version, or None if not set."""
        self.ensure_version_table()
        row = self.conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()
        return row[0] if row else None

    def set_version(self, version: int) -> None:
        """Set the schema version, replacing any existing value."""
        self.ensure_version_table()
        self.conn.execute("DELETE FROM schema_version")
        self.conn.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (version, iso_utcnow()),
        )

    def ensure_current_version(self) -> None:
        """Ensure the schema_version table reflects CURRENT_SCHEMA_VERSION."""
        current = self.get_version()
        if current is None or current < CURRENT_SCHEMA_VERSION:
            self.set_version(CURRENT_SCHEMA_VERSION)
