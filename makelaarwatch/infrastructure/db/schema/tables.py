from __future__ import annotations

SCHEMA_VERSION_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);
"""

SCHEMA_AGENTS_SQL = """
CREATE TABLE IF NOT EXISTS agents (
    id INTEGER PRIMARY KEY,
    name TEXT
);
"""

SCHEMA_LISTINGS_SQL = """
CREATE TABLE IF NOT EXISTS listings (
    id TEXT PRIMARY KEY,
    agent_id INTEGER NOT NULL,
    locality TEXT,
    feature_flag INTEGER NOT NULL DEFAULT 0,
    FOREIGN KEY (agent_id) REFERENCES agents (id) ON DELETE CASCADE
);
CREATE INDEX IF NOT EXISTS idx_listings_agent_id ON listings (agent_id);
"""

SCHEMA_SYNC_RUNS_SQL = """
CREATE TABLE IF NOT EXISTS sync_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cycle INTEGER,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    status TEXT,
    policy TEXT,
    partial INTEGER DEFAULT 0,
    pages_fetched INTEGER DEFAULT 0,
    agents_seen INTEGER DEFAULT 0,
    listings_seen INTEGER DEFAULT 0,
    agents_added INTEGER DEFAULT 0,
    agents_updated INTEGER DEFAULT 0,
    agents_removed INTEGER DEFAULT 0,
    listings_added INTEGER DEFAULT 0,
    listings_updated INTEGER DEFAULT 0,
    listings_removed INTEGER DEFAULT 0,
    notes TEXT
);
CREATE INDEX IF NOT EXISTS idx_sync_runs_started_at ON sync_runs (started_at);
"""
