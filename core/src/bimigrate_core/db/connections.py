from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

from bimigrate_core.db.filters import build_where
from bimigrate_core.db.sqlite import connect, utc_now_sqlite_iso

_COLUMNS = """
    connection_id, name, bi_tool, connection_url, credentials_encrypted, status,
    created_at, updated_at, last_sync_at
""".strip()


@dataclass(frozen=True)
class ConnectionRow:
    connection_id: int
    name: str
    bi_tool: str
    connection_url: str
    credentials: str
    status: str
    created_at: str
    updated_at: str
    last_sync_at: str | None


def _connection_from_db_row(row: sqlite3.Row) -> ConnectionRow:
    return ConnectionRow(
        connection_id=int(row["connection_id"]),
        name=row["name"],
        bi_tool=row["bi_tool"],
        connection_url=row["connection_url"],
        credentials=row["credentials_encrypted"],
        status=row["status"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_sync_at=row["last_sync_at"],
    )


def _select_by_id(conn: sqlite3.Connection, connection_id: int) -> sqlite3.Row | None:
    return conn.execute(
        f"SELECT {_COLUMNS} FROM connections WHERE connection_id = ?;",
        (connection_id,),
    ).fetchone()


def create_connection(
    db_path,
    *,
    name: str,
    bi_tool: str,
    connection_url: str,
    credentials: str,
) -> ConnectionRow:
    with connect(db_path) as conn:
        cur = conn.execute(
            """
            INSERT INTO connections (name, bi_tool, connection_url, credentials_encrypted, status)
            VALUES (?, ?, ?, ?, 'inactive');
            """.strip(),
            (name, bi_tool, connection_url, credentials),
        )
        if cur.lastrowid is None:
            raise RuntimeError("Failed to insert connection")
        row = _select_by_id(conn, int(cur.lastrowid))

    if row is None:
        raise RuntimeError("Failed to read connection after insert")

    return _connection_from_db_row(row)


def get_connection(db_path, *, connection_id: int) -> ConnectionRow | None:
    with connect(db_path) as conn:
        row = _select_by_id(conn, connection_id)

    return _connection_from_db_row(row) if row is not None else None


def list_connections(
    db_path,
    *,
    bi_tool: str | None = None,
    status: str | None = None,
) -> list[ConnectionRow]:
    where_sql, params = build_where(
        {"bi_tool": bi_tool, "status": status},
        allowed=("bi_tool", "status"),
    )

    with connect(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM connections
            {where_sql}
            ORDER BY connection_id ASC;
            """.strip(),
            params,
        ).fetchall()

    return [_connection_from_db_row(r) for r in rows]


def patch_connection(
    db_path,
    *,
    connection_id: int,
    name: str | None = None,
    connection_url: str | None = None,
    credentials: str | None = None,
    status: str | None = None,
) -> ConnectionRow | None:
    """Merge the provided fields; `updated_at` is refreshed even when nothing else is."""

    updates: list[str] = []
    params: list[Any] = []

    if name is not None:
        updates.append("name = ?")
        params.append(name)

    if connection_url is not None:
        updates.append("connection_url = ?")
        params.append(connection_url)

    if credentials is not None:
        updates.append("credentials_encrypted = ?")
        params.append(credentials)

    if status is not None:
        updates.append("status = ?")
        params.append(status)

    updates.append("updated_at = ?")
    params.append(utc_now_sqlite_iso())
    params.append(connection_id)

    with connect(db_path) as conn:
        cur = conn.execute(
            f"""
            UPDATE connections
            SET {", ".join(updates)}
            WHERE connection_id = ?;
            """.strip(),
            params,
        )
        if cur.rowcount == 0:
            return None
        row = _select_by_id(conn, connection_id)

    return _connection_from_db_row(row) if row is not None else None


def set_connection_status(
    db_path,
    *,
    connection_id: int,
    status: str,
    mark_synced: bool = False,
) -> bool:
    now = utc_now_sqlite_iso()
    last_sync_sql = ", last_sync_at = ?" if mark_synced else ""
    params: list[Any] = [status, now]
    if mark_synced:
        params.append(now)
    params.append(connection_id)

    with connect(db_path) as conn:
        cur = conn.execute(
            f"""
            UPDATE connections
            SET status = ?, updated_at = ?{last_sync_sql}
            WHERE connection_id = ?;
            """.strip(),
            params,
        )
        return cur.rowcount > 0
