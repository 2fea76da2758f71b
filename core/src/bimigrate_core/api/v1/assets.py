from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from bimigrate_core.api.deps import get_db_path
from bimigrate_core.api.models import ApiResponse, ok
from bimigrate_core.db.assets import AssetRow
from bimigrate_core.domain import AssetType
from bimigrate_core.services import assets as asset_service

router = APIRouter(tags=["assets"])


class Asset(BaseModel):
    id: int
    connection_id: int
    external_id: str
    name: str
    description: str | None = None
    asset_type: AssetType
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


def to_asset(row: AssetRow) -> Asset:
    return Asset(
        id=row.asset_id,
        connection_id=row.connection_id,
        external_id=row.external_id,
        name=row.name,
        description=row.description,
        asset_type=row.asset_type,
        metadata=row.metadata,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


@router.get("/assets", response_model=ApiResponse[list[Asset]])
async def assets_list(
    connection_id: int | None = Query(default=None, description="Filter by connection"),
    asset_type: AssetType | None = Query(default=None, description="Filter by asset type"),
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[list[Asset]]:
    rows = asset_service.get_assets(db_path, connection_id=connection_id, asset_type=asset_type)
    return ok([to_asset(r) for r in rows])


@router.get("/assets/{asset_id}", response_model=ApiResponse[Asset])
async def assets_get(
    asset_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[Asset]:
    return ok(to_asset(asset_service.get_asset(db_path, asset_id=asset_id)))
