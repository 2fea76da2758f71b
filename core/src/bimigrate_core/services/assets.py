from __future__ import annotations

from bimigrate_core.db import assets as assets_db
from bimigrate_core.db.assets import AssetRow
from bimigrate_core.errors import NotFoundError


def get_assets(
    db_path,
    *,
    connection_id: int | None = None,
    asset_type: str | None = None,
) -> list[AssetRow]:
    return assets_db.list_assets(db_path, connection_id=connection_id, asset_type=asset_type)


def get_asset(db_path, *, asset_id: int) -> AssetRow:
    row = assets_db.get_asset(db_path, asset_id=asset_id)
    if row is None:
        raise NotFoundError(f"Asset with id {asset_id} not found")
    return row
