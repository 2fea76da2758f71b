from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from bimigrate_core.db.sqlite import connect, loads_dict, utc_now_sqlite_iso


def test_connect_closes_after_commit(db_path: Path) -> None:
    with connect(db_path) as conn:
        conn.execute(
            "INSERT INTO connections (name, bi_tool, connection_url, credentials_encrypted) "
            "VALUES ('c', 'looker', 'https://looker.example.com', 'x');"
        )

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1;")

    with connect(db_path) as check:
        assert check.execute("SELECT COUNT(*) AS n FROM connections;").fetchone()["n"] == 1


def test_connect_rolls_back_and_closes_on_error(db_path: Path) -> None:
    with pytest.raises(RuntimeError):
        with connect(db_path) as conn:
            conn.execute(
                "INSERT INTO connections (name, bi_tool, connection_url, credentials_encrypted) "
                "VALUES ('c', 'looker', 'https://looker.example.com', 'x');"
            )
            raise RuntimeError("abort")

    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1;")

    with connect(db_path) as check:
        assert check.execute("SELECT COUNT(*) AS n FROM connections;").fetchone()["n"] == 0


def test_connect_enforces_foreign_keys(db_path: Path) -> None:
    with pytest.raises(sqlite3.IntegrityError):
        with connect(db_path) as conn:
            conn.execute(
                "INSERT INTO migration_history (migration_job_id, status, created_at) "
                "VALUES (424242, 'pending', ?);",
                (utc_now_sqlite_iso(),),
            )


def test_utc_now_and_json_helpers() -> None:
    stamp = utc_now_sqlite_iso()
    assert stamp.endswith("Z")
    assert len(stamp) == len("2026-01-01T00:00:00.000Z")

    assert loads_dict('{"a": 1}') == {"a": 1}
    assert loads_dict("[1, 2]") is None
    assert loads_dict("not json") is None
    assert loads_dict(None) is None
