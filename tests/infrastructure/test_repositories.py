from pathlib import Path

from makelaarwatch.domain.models import Agent, Listing
from makelaarwatch.infrastructure.db import ensure_schema, get_connection
from makelaarwatch.infrastructure.db.repositories import (
    AgentRepository,
    ListingRepository,
    SyncRunRepository,
)


def test_schema_is_idempotent(tmp_path: Path) -> None:
    db_path = tmp_path / "repo.db"
    with get_connection(db_path) as conn:
        ensure_schema(conn)
        ensure_schema(conn)
        version = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()[0]

    assert version == 1


def test_deleting_agent_cascades_to_listings(tmp_path: Path) -> None:
    with get_connection(tmp_path / "repo.db") as conn:
        ensure_schema(conn)
        agents = AgentRepository(conn)
        listings = ListingRepository(conn)
        agents.insert(Agent(10, "Alice"))
        listings.insert(Listing("L1", 10))
        conn.commit()

        assert agents.delete_many([10]) == 1
        conn.commit()

        assert listings.all_ids() == set()


def test_delete_many_handles_large_id_sets(tmp_path: Path) -> None:
    with get_connection(tmp_path / "repo.db") as conn:
        ensure_schema(conn)
        agents = AgentRepository(conn)
        for agent_id in range(1200):
            agents.insert(Agent(agent_id))
        conn.commit()

        removed = agents.delete_many(range(1, 1200))
        conn.commit()

        assert removed == 1199
        assert agents.all_ids() == {0}


def test_leaderboard_orders_by_count_then_id(tmp_path: Path) -> None:
    with get_connection(tmp_path / "repo.db") as conn:
        ensure_schema(conn)
        agents = AgentRepository(conn)
        listings = ListingRepository(conn)
        for agent in (Agent(3, "C"), Agent(1, "A"), Agent(2, "B")):
            agents.insert(agent)
        for listing in (
            Listing("L1", 3, feature_flag=True),
            Listing("L2", 3),
            Listing("L3", 1),
            Listing("L4", 2, feature_flag=True),
        ):
            listings.insert(listing)
        conn.commit()

        rows = agents.leaderboard(limit=10)
        gardens = agents.leaderboard(limit=1, feature_only=True)

    assert [(row["agent_id"], row["listing_count"]) for row in rows] == [(3, 2), (1, 1), (2, 1)]
    assert gardens == [{"agent_id": 2, "agent_name": "B", "listing_count": 1}]


def test_sync_run_rows(tmp_path: Path) -> None:
    with get_connection(tmp_path / "repo.db") as conn:
        ensure_schema(conn)
        runs = SyncRunRepository(conn)
        runs.insert({"cycle": 1, "started_at": "2024-01-01T00:00:00Z", "status": "success"})
        runs.insert({"cycle": 2, "started_at": "2024-01-01T01:00:00Z", "status": "failed"})
        conn.commit()

        recent = runs.list_recent(limit=1)

    assert len(recent) == 1
    assert recent[0]["cycle"] == 2
    assert recent[0]["status"] == "failed"


def test_sync_run_insert_keeps_column_defaults(tmp_path: Path) -> None:
    with get_connection(tmp_path / "repo.db") as conn:
        ensure_schema(conn)
        runs = SyncRunRepository(conn)
        runs.insert({"cycle": 1, "started_at": "2024-01-01T00:00:00Z", "unknown": "x"})
        conn.commit()

        (row,) = runs.list_recent()

    assert row["pages_fetched"] == 0
    assert row["partial"] == 0
    assert row["status"] is None
