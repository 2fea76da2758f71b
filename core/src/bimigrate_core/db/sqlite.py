from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any


def utc_now_sqlite_iso() -> str:
    # Match the DB default format: YYYY-MM-DDTHH:MM:SS.sssZ
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@contextmanager
def connect(db_path) -> Iterator[sqlite3.Connection]:
    """Open a connection for one transaction: commit on success, roll back on error.

    The connection is closed on exit either way.
    """

    conn = sqlite3.connect(db_path)
    try:
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON;")
        with conn:
            yield conn
    finally:
        conn.close()


def loads_json(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return None


def loads_dict(raw: str | None) -> dict[str, Any] | None:
    v = loads_json(raw)
    if isinstance(v, dict):
        return v
    return None


def dumps_json(value: Any | None) -> str | None:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)
