from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from makelaarwatch.infrastructure.db import ensure_schema, get_connection
from makelaarwatch.infrastructure.db.repositories import SyncRunRepository
from makelaarwatch.interfaces.cli import cli


def _seed(db_file: Path) -> None:
    with get_connection(db_file) as conn:
        ensure_schema(conn)
        runs = SyncRunRepository(conn)
        runs.insert(
            {
                "cycle": 1,
                "started_at": "2024-01-01T00:00:00Z",
                "status": "success",
                "policy": "diff_and_patch",
                "pages_fetched": 3,
                "listings_seen": 3,
                "agents_added": 2,
                "listings_added": 3,
            }
        )
        runs.insert(
            {
                "cycle": 2,
                "started_at": "2024-01-01T01:00:00Z",
                "status": "partial",
                "policy": "diff_and_patch",
                "partial": 1,
                "pages_fetched": 1,
                "listings_removed": 1,
                "notes": "koop/amsterdam/tuin: transient: HTTP 503",
            }
        )
        conn.commit()


def test_runs_table_lists_newest_first(tmp_path: Path) -> None:
    db_file = tmp_path / "runs.db"
    _seed(db_file)

    result = CliRunner().invoke(cli, ["runs", "--db", str(db_file)])

    assert result.exit_code == 0, result.output
    assert "Recent sync runs" in result.output
    assert result.output.index("partial") < result.output.index("success")
    assert "HTTP 503" in result.output


def test_runs_json_output(tmp_path: Path) -> None:
    db_file = tmp_path / "runs.db"
    _seed(db_file)

    result = CliRunner().invoke(cli, ["runs", "--db", str(db_file), "--limit", "1", "--json-output"])

    assert result.exit_code == 0, result.output
    (latest,) = json.loads(result.output)
    assert latest["cycle"] == 2
    assert latest["partial"] is True
    assert latest["listings_removed"] == 1
    assert latest["agents_added"] == 0


def test_runs_empty_database(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["runs", "--db", str(tmp_path / "empty.db")])

    assert result.exit_code == 0
    assert "No sync runs recorded yet" in result.output
