import asyncio
import sqlite3
from pathlib import Path

import httpx
import pytest

from feed_stubs import API_URL, FakeClock, feed_transport, page_body, record
from makelaarwatch.app.config import ConfigurationError, SyncSettings
from makelaarwatch.infrastructure.observability import get_registry
from makelaarwatch.services.leaderboard import LeaderboardService
from makelaarwatch.services.sync import CancellationToken, SyncState
from makelaarwatch.services.sync_service import SyncService

PLAIN = "/amsterdam/"
GARDEN = "/amsterdam/tuin/"

FEED = {
    (PLAIN, 1): page_body([record("L1", 10, "Alice"), record("L2", 11, "Bob")], 1, 2),
    (PLAIN, 2): page_body([record("L3", 10, "Alice")], 2, 2),
    (GARDEN, 1): page_body([record("L2", 11, None)], 1, 1),
}


def _run(settings: SyncSettings, transport: httpx.MockTransport, clock: FakeClock, **kwargs):
    async def run():
        async with httpx.AsyncClient(transport=transport) as http:
            service = SyncService(settings, http_client=http, sleeper=clock.sleep, clock=clock)
            return await service.run(**kwargs)

    return asyncio.run(run())


def test_one_cycle_fetches_both_queries_and_reconciles(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "sync.db"
    calls: list[httpx.Request] = []
    settings = SyncSettings(api_url=API_URL, db_path=db_path)

    state = _run(settings, feed_transport(FEED, calls), clock, max_cycles=1)

    assert [request.url.params["zo"] for request in calls] == [PLAIN, PLAIN, GARDEN]
    assert state.cycles_run == 1
    assert state.cycles_failed == 0
    report = state.last_report
    assert report is not None
    assert report.status == "success"
    assert report.pages_fetched == 3
    assert report.agents_seen == 2
    assert report.listings_seen == 3

    with sqlite3.connect(db_path) as conn:
        agents = dict(conn.execute("SELECT id, name FROM agents").fetchall())
        flags = dict(conn.execute("SELECT id, feature_flag FROM listings").fetchall())
        runs = conn.execute("SELECT cycle, status, policy, listings_added FROM sync_runs").fetchall()

    assert agents == {10: "Alice", 11: "Bob"}
    assert flags == {"L1": 0, "L2": 1, "L3": 0}
    assert runs == [(1, "success", "diff_and_patch", 3)]


def test_leaderboard_after_sync(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "sync.db"
    _run(SyncSettings(api_url=API_URL, db_path=db_path), feed_transport(FEED), clock, max_cycles=1)

    service = LeaderboardService.from_sqlite_path(db_path)
    top = service.top_agents(10)
    gardens = service.top_agents(10, feature_only=True)

    assert [(entry.rank, entry.agent_id, entry.agent_name, entry.listing_count) for entry in top] == [
        (1, 10, "Alice", 2),
        (2, 11, "Bob", 1),
    ]
    assert [(entry.agent_id, entry.listing_count) for entry in gardens] == [(11, 1)]


def test_second_cycle_sleeps_interval_and_changes_nothing(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "sync.db"
    settings = SyncSettings(api_url=API_URL, db_path=db_path, interval_seconds=900)

    state = _run(settings, feed_transport(FEED), clock, max_cycles=2)

    assert state.cycles_run == 2
    assert 900 in clock.sleeps
    assert state.last_report is not None
    assert state.last_report.stats.mutations == 0
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM sync_runs").fetchone()[0] == 2


def test_partial_fetch_is_still_reconciled(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "sync.db"

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.params["zo"] == GARDEN:
            return httpx.Response(200, text="{not json")
        return httpx.Response(200, json=FEED[(PLAIN, int(request.url.params["page"]))])

    state = _run(
        SyncSettings(api_url=API_URL, db_path=db_path),
        httpx.MockTransport(handler),
        clock,
        max_cycles=1,
    )

    report = state.last_report
    assert report is not None
    assert report.status == "partial"
    assert report.partial
    assert any("koop/amsterdam/tuin" in err for err in report.errors)
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM listings").fetchone()[0] == 3
    assert get_registry().counter("sync_cycles_total").get({"status": "partial"}) == 1


def test_cancelled_before_start_writes_nothing(tmp_path: Path, clock: FakeClock) -> None:
    db_path = tmp_path / "sync.db"
    calls: list[httpx.Request] = []
    token = CancellationToken()
    token.cancel()

    state = _run(
        SyncSettings(api_url=API_URL, db_path=db_path),
        feed_transport(FEED, calls),
        clock,
        token=token,
    )

    assert calls == []
    assert state.status is SyncState.CANCELLED
    assert state.cycles_run == 0


def test_missing_api_url_is_a_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        SyncService(SyncSettings(db_path=tmp_path / "sync.db"))
