from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from bimigrate_core.api.deps import get_db_path
from bimigrate_core.api.models import ApiResponse, ok
from bimigrate_core.api.v1.assets import Asset, to_asset
from bimigrate_core.db.connections import ConnectionRow
from bimigrate_core.domain import BiTool, ConnectionStatus
from bimigrate_core.services import connections as connection_service

router = APIRouter(tags=["connections"])


class Connection(BaseModel):
    id: int
    name: str
    bi_tool: BiTool
    connection_url: str
    credentials: str
    status: ConnectionStatus
    created_at: datetime
    updated_at: datetime
    last_sync_at: datetime | None = None


def _to_connection(row: ConnectionRow) -> Connection:
    return Connection(
        id=row.connection_id,
        name=row.name,
        bi_tool=row.bi_tool,
        connection_url=row.connection_url,
        credentials=row.credentials,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        last_sync_at=row.last_sync_at,
    )


class ConnectionCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    bi_tool: BiTool
    connection_url: str = Field(min_length=1)
    credentials: str = Field(min_length=1)


class ConnectionPatchRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    connection_url: str | None = Field(default=None, min_length=1)
    credentials: str | None = Field(default=None, min_length=1)
    status: ConnectionStatus | None = None


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str


@router.post("/connections", response_model=ApiResponse[Connection])
async def connections_create(
    payload: ConnectionCreateRequest,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[Connection]:
    row = connection_service.create_connection(
        db_path,
        name=payload.name,
        bi_tool=payload.bi_tool,
        connection_url=payload.connection_url,
        credentials=payload.credentials,
    )
    return ok(_to_connection(row))


@router.get("/connections", response_model=ApiResponse[list[Connection]])
async def connections_list(
    bi_tool: BiTool | None = Query(default=None, description="Filter by BI tool"),
    status: ConnectionStatus | None = Query(default=None, description="Filter by status"),
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[list[Connection]]:
    rows = connection_service.get_connections(db_path, bi_tool=bi_tool, status=status)
    return ok([_to_connection(r) for r in rows])


@router.get("/connections/{connection_id}", response_model=ApiResponse[Connection])
async def connections_get(
    connection_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[Connection]:
    row = connection_service.get_connection(db_path, connection_id=connection_id)
    return ok(_to_connection(row))


@router.patch("/connections/{connection_id}", response_model=ApiResponse[Connection])
async def connections_patch(
    connection_id: int,
    payload: ConnectionPatchRequest,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[Connection]:
    row = connection_service.update_connection(
        db_path,
        connection_id=connection_id,
        name=payload.name,
        connection_url=payload.connection_url,
        credentials=payload.credentials,
        status=payload.status,
    )
    return ok(_to_connection(row))


@router.post(
    "/connections/{connection_id}/test",
    response_model=ApiResponse[ConnectionTestResponse],
)
async def connections_test(
    connection_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[ConnectionTestResponse]:
    # Failures are part of the result, not HTTP errors.
    result = connection_service.test_connection(db_path, connection_id=connection_id)
    return ok(ConnectionTestResponse(success=result.success, message=result.message))


@router.post("/connections/{connection_id}/sync", response_model=ApiResponse[list[Asset]])
async def connections_sync(
    connection_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[list[Asset]]:
    rows = connection_service.sync_assets(db_path, connection_id=connection_id)
    return ok([to_asset(r) for r in rows])
