from __future__ import annotations

import json
import sqlite3
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any

from bimigrate_core.db.filters import build_where
from bimigrate_core.db.sqlite import connect, dumps_json, loads_dict, loads_json, utc_now_sqlite_iso

_JOB_COLUMNS = """
    migration_job_id, name, description, source_asset_ids_json, target_databricks_asset_type,
    status, transformation_config_json, mapping_config_json, error_message,
    progress_percentage, created_at, updated_at, started_at, completed_at
""".strip()

# Plain columns a caller may overwrite through `apply_job_update`.
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "status",
        "error_message",
        "progress_percentage",
        "transformation_config",
        "mapping_config",
    }
)

_JSON_COLUMNS = {
    "transformation_config": "transformation_config_json",
    "mapping_config": "mapping_config_json",
}


@dataclass(frozen=True)
class MigrationJobRow:
    migration_job_id: int
    name: str
    description: str | None
    source_asset_ids: list[int]
    target_databricks_asset_type: str
    status: str
    transformation_config: dict[str, Any] | None
    mapping_config: dict[str, Any] | None
    error_message: str | None
    progress_percentage: int
    created_at: str
    updated_at: str
    started_at: str | None
    completed_at: str | None


def _job_from_db_row(row: sqlite3.Row) -> MigrationJobRow:
    raw_ids = loads_json(row["source_asset_ids_json"])
    return MigrationJobRow(
        migration_job_id=int(row["migration_job_id"]),
        name=row["name"],
        description=row["description"],
        source_asset_ids=[int(x) for x in raw_ids] if isinstance(raw_ids, list) else [],
        target_databricks_asset_type=row["target_databricks_asset_type"],
        status=row["status"],
        transformation_config=loads_dict(row["transformation_config_json"]),
        mapping_config=loads_dict(row["mapping_config_json"]),
        error_message=row["error_message"],
        progress_percentage=int(row["progress_percentage"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        started_at=row["started_at"],
        completed_at=row["completed_at"],
    )


def _select_job(conn: sqlite3.Connection, migration_job_id: int) -> sqlite3.Row | None:
    return conn.execute(
        f"SELECT {_JOB_COLUMNS} FROM migration_jobs WHERE migration_job_id = ?;",
        (migration_job_id,),
    ).fetchone()


def create_migration_job(
    db_path,
    *,
    name: str,
    description: str | None,
    source_asset_ids: list[int],
    target_databricks_asset_type: str,
    transformation_config: dict[str, Any] | None,
    mapping_config: dict[str, Any] | None,
) -> MigrationJobRow:
    now = utc_now_sqlite_iso()

    with connect(db_path) as conn:
        cur = conn.execute(
            """
            INSERT INTO migration_jobs (
                name,
                description,
                source_asset_ids_json,
                target_databricks_asset_type,
                status,
                transformation_config_json,
                mapping_config_json,
                progress_percentage,
                created_at,
                updated_at
            )
            VALUES (?, ?, ?, ?, 'pending', ?, ?, 0, ?, ?);
            """.strip(),
            (
                name,
                description,
                json.dumps(list(source_asset_ids)),
                target_databricks_asset_type,
                dumps_json(transformation_config),
                dumps_json(mapping_config),
                now,
                now,
            ),
        )
        if cur.lastrowid is None:
            raise RuntimeError("Failed to insert migration job")
        row = _select_job(conn, int(cur.lastrowid))

    if row is None:
        raise RuntimeError("Failed to read migration job after insert")

    return _job_from_db_row(row)


def get_migration_job(db_path, *, migration_job_id: int) -> MigrationJobRow | None:
    with connect(db_path) as conn:
        row = _select_job(conn, migration_job_id)

    return _job_from_db_row(row) if row is not None else None


def list_migration_jobs(
    db_path,
    *,
    status: str | None = None,
    target_databricks_asset_type: str | None = None,
) -> list[MigrationJobRow]:
    where_sql, params = build_where(
        {"status": status, "target_databricks_asset_type": target_databricks_asset_type},
        allowed=("status", "target_databricks_asset_type"),
    )

    with connect(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT {_JOB_COLUMNS}
            FROM migration_jobs
            {where_sql}
            ORDER BY migration_job_id ASC;
            """.strip(),
            params,
        ).fetchall()

    return [_job_from_db_row(r) for r in rows]


@dataclass(frozen=True)
class HistoryAppend:
    status: str
    message: str | None


def apply_job_update(
    db_path,
    *,
    migration_job_id: int,
    expected_statuses: Collection[str],
    changes: Mapping[str, Any],
    mark_started: bool = False,
    mark_completed: bool = False,
    history: HistoryAppend | None = None,
) -> MigrationJobRow | None:
    """Apply a partial update to a migration job, optionally appending history.

    The UPDATE only matches while the stored status is one of `expected_statuses`,
    and the history row is written in the same transaction. Returns None when
    nothing matched (unknown id, or the status moved underneath the caller).

    `started_at` / `completed_at` are only ever filled, never overwritten.
    """

    unknown = set(changes) - UPDATABLE_COLUMNS
    if unknown:
        raise ValueError(f"Unsupported migration job columns: {sorted(unknown)}")

    now = utc_now_sqlite_iso()
    updates: list[str] = []
    params: list[Any] = []

    for column, value in changes.items():
        if column in _JSON_COLUMNS:
            updates.append(f"{_JSON_COLUMNS[column]} = ?")
            params.append(dumps_json(value))
        else:
            updates.append(f"{column} = ?")
            params.append(value)

    if mark_started:
        updates.append("started_at = COALESCE(started_at, ?)")
        params.append(now)

    if mark_completed:
        updates.append("completed_at = COALESCE(completed_at, ?)")
        params.append(now)

    updates.append("updated_at = ?")
    params.append(now)

    expected = sorted(expected_statuses)
    status_placeholders = ", ".join("?" for _ in expected)
    params.append(migration_job_id)
    params.extend(expected)

    with connect(db_path) as conn:
        cur = conn.execute(
            f"""
            UPDATE migration_jobs
            SET {", ".join(updates)}
            WHERE migration_job_id = ? AND status IN ({status_placeholders});
            """.strip(),
            params,
        )
        if cur.rowcount == 0:
            return None

        if history is not None:
            conn.execute(
                """
                INSERT INTO migration_history (migration_job_id, status, message, created_at)
                VALUES (?, ?, ?, ?);
                """.strip(),
                (migration_job_id, history.status, history.message, now),
            )

        row = _select_job(conn, migration_job_id)

    return _job_from_db_row(row) if row is not None else None


@dataclass(frozen=True)
class MigrationHistoryRow:
    history_id: int
    migration_job_id: int
    status: str
    message: str | None
    created_at: str


def _history_from_db_row(row: sqlite3.Row) -> MigrationHistoryRow:
    return MigrationHistoryRow(
        history_id=int(row["history_id"]),
        migration_job_id=int(row["migration_job_id"]),
        status=row["status"],
        message=row["message"],
        created_at=row["created_at"],
    )


def list_migration_history(db_path, *, migration_job_id: int) -> list[MigrationHistoryRow]:
    with connect(db_path) as conn:
        rows = conn.execute(
            """
            SELECT history_id, migration_job_id, status, message, created_at
            FROM migration_history
            WHERE migration_job_id = ?
            ORDER BY created_at ASC, history_id ASC;
            """.strip(),
            (migration_job_id,),
        ).fetchall()

    return [_history_from_db_row(r) for r in rows]
