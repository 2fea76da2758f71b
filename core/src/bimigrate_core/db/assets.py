from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from bimigrate_core.db.filters import build_where
from bimigrate_core.db.sqlite import connect, loads_dict, utc_now_sqlite_iso

_COLUMNS = """
    asset_id, connection_id, external_id, name, description, asset_type,
    metadata_json, created_at, updated_at
""".strip()


@dataclass(frozen=True)
class AssetRow:
    asset_id: int
    connection_id: int
    external_id: str
    name: str
    description: str | None
    asset_type: str
    metadata: dict[str, Any]
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class NewAsset:
    external_id: str
    name: str
    description: str | None
    asset_type: str
    metadata: dict[str, Any]


def _asset_from_db_row(row: sqlite3.Row) -> AssetRow:
    return AssetRow(
        asset_id=int(row["asset_id"]),
        connection_id=int(row["connection_id"]),
        external_id=row["external_id"],
        name=row["name"],
        description=row["description"],
        asset_type=row["asset_type"],
        metadata=loads_dict(row["metadata_json"]) or {},
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def get_asset(db_path, *, asset_id: int) -> AssetRow | None:
    with connect(db_path) as conn:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM assets WHERE asset_id = ?;",
            (asset_id,),
        ).fetchone()

    return _asset_from_db_row(row) if row is not None else None


def list_assets(
    db_path,
    *,
    connection_id: int | None = None,
    asset_type: str | None = None,
) -> list[AssetRow]:
    where_sql, params = build_where(
        {"connection_id": connection_id, "asset_type": asset_type},
        allowed=("connection_id", "asset_type"),
    )

    with connect(db_path) as conn:
        rows = conn.execute(
            f"""
            SELECT {_COLUMNS}
            FROM assets
            {where_sql}
            ORDER BY asset_id ASC;
            """.strip(),
            params,
        ).fetchall()

    return [_asset_from_db_row(r) for r in rows]


def existing_asset_ids(db_path, *, asset_ids: Iterable[int]) -> set[int]:
    """Return the subset of `asset_ids` that exist in the store."""

    wanted = sorted(set(asset_ids))
    if not wanted:
        return set()

    placeholders = ", ".join("?" for _ in wanted)
    with connect(db_path) as conn:
        rows = conn.execute(
            f"SELECT asset_id FROM assets WHERE asset_id IN ({placeholders});",
            wanted,
        ).fetchall()

    return {int(r["asset_id"]) for r in rows}


def record_synced_assets(
    db_path,
    *,
    connection_id: int,
    assets: Sequence[NewAsset],
) -> list[AssetRow]:
    """Insert discovered assets and stamp the connection's sync time.

    Both writes share one transaction: either the assets land and the connection
    shows the new `last_sync_at`, or neither happens.
    """

    now = utc_now_sqlite_iso()
    inserted_ids: list[int] = []

    with connect(db_path) as conn:
        for asset in assets:
            cur = conn.execute(
                """
                INSERT INTO assets (
                    connection_id,
                    external_id,
                    name,
                    description,
                    asset_type,
                    metadata_json,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?);
                """.strip(),
                (
                    connection_id,
                    asset.external_id,
                    asset.name,
                    asset.description,
                    asset.asset_type,
                    json.dumps(asset.metadata or {}, ensure_ascii=False),
                    now,
                    now,
                ),
            )
            if cur.lastrowid is None:
                raise RuntimeError("Failed to insert asset")
            inserted_ids.append(int(cur.lastrowid))

        conn.execute(
            """
            UPDATE connections
            SET last_sync_at = ?, updated_at = ?
            WHERE connection_id = ?;
            """.strip(),
            (now, now, connection_id),
        )

        rows = []
        if inserted_ids:
            placeholders = ", ".join("?" for _ in inserted_ids)
            rows = conn.execute(
                f"""
                SELECT {_COLUMNS}
                FROM assets
                WHERE asset_id IN ({placeholders})
                ORDER BY asset_id ASC;
                """.strip(),
                inserted_ids,
            ).fetchall()

    return [_asset_from_db_row(r) for r in rows]
