from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from bimigrate_core.api.deps import get_db_path
from bimigrate_core.api.models import ApiResponse, ok
from bimigrate_core.db.migration_jobs import MigrationHistoryRow, MigrationJobRow
from bimigrate_core.domain import DatabricksAssetType, MigrationStatus
from bimigrate_core.services import migrations as migration_service

router = APIRouter(tags=["migration-jobs"])


class MigrationJob(BaseModel):
    id: int
    name: str
    description: str | None = None
    source_asset_ids: list[int]
    target_databricks_asset_type: DatabricksAssetType
    status: MigrationStatus
    transformation_config: dict[str, Any] | None = None
    mapping_config: dict[str, Any] | None = None
    error_message: str | None = None
    progress_percentage: int = Field(ge=0, le=100)
    created_at: datetime
    updated_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None


def _to_job(row: MigrationJobRow) -> MigrationJob:
    return MigrationJob(
        id=row.migration_job_id,
        name=row.name,
        description=row.description,
        source_asset_ids=row.source_asset_ids,
        target_databricks_asset_type=row.target_databricks_asset_type,
        status=row.status,
        transformation_config=row.transformation_config,
        mapping_config=row.mapping_config,
        error_message=row.error_message,
        progress_percentage=row.progress_percentage,
        created_at=row.created_at,
        updated_at=row.updated_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
    )


class MigrationHistoryEntry(BaseModel):
    id: int
    migration_job_id: int
    status: MigrationStatus
    message: str | None = None
    created_at: datetime


def _to_history(row: MigrationHistoryRow) -> MigrationHistoryEntry:
    return MigrationHistoryEntry(
        id=row.history_id,
        migration_job_id=row.migration_job_id,
        status=row.status,
        message=row.message,
        created_at=row.created_at,
    )


class MigrationJobCreateRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str | None = None
    source_asset_ids: list[int] = Field(min_length=1)
    target_databricks_asset_type: DatabricksAssetType
    transformation_config: dict[str, Any] | None = None
    mapping_config: dict[str, Any] | None = None


class MigrationJobPatchRequest(BaseModel):
    status: MigrationStatus | None = None
    error_message: str | None = None
    progress_percentage: int | None = Field(default=None, ge=0, le=100)
    transformation_config: dict[str, Any] | None = None
    mapping_config: dict[str, Any] | None = None


@router.post("/migration-jobs", response_model=ApiResponse[MigrationJob])
async def migration_jobs_create(
    payload: MigrationJobCreateRequest,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[MigrationJob]:
    row = migration_service.create_migration_job(
        db_path,
        name=payload.name,
        description=payload.description,
        source_asset_ids=payload.source_asset_ids,
        target_databricks_asset_type=payload.target_databricks_asset_type,
        transformation_config=payload.transformation_config,
        mapping_config=payload.mapping_config,
    )
    return ok(_to_job(row))


@router.get("/migration-jobs", response_model=ApiResponse[list[MigrationJob]])
async def migration_jobs_list(
    status: MigrationStatus | None = Query(default=None, description="Filter by status"),
    target_databricks_asset_type: DatabricksAssetType | None = Query(
        default=None, description="Filter by target Databricks asset type"
    ),
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[list[MigrationJob]]:
    rows = migration_service.get_migration_jobs(
        db_path,
        status=status,
        target_databricks_asset_type=target_databricks_asset_type,
    )
    return ok([_to_job(r) for r in rows])


@router.get("/migration-jobs/{job_id}", response_model=ApiResponse[MigrationJob])
async def migration_jobs_get(
    job_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[MigrationJob]:
    return ok(_to_job(migration_service.get_migration_job(db_path, migration_job_id=job_id)))


@router.patch("/migration-jobs/{job_id}", response_model=ApiResponse[MigrationJob])
async def migration_jobs_patch(
    job_id: int,
    payload: MigrationJobPatchRequest,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[MigrationJob]:
    # Only forward fields the client actually sent so explicit nulls can clear values.
    touched = {name: getattr(payload, name) for name in payload.model_fields_set}
    row = migration_service.update_migration_job(db_path, migration_job_id=job_id, **touched)
    return ok(_to_job(row))


@router.post("/migration-jobs/{job_id}/cancel", response_model=ApiResponse[MigrationJob])
async def migration_jobs_cancel(
    job_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[MigrationJob]:
    return ok(_to_job(migration_service.cancel_migration_job(db_path, migration_job_id=job_id)))


@router.get(
    "/migration-jobs/{job_id}/history",
    response_model=ApiResponse[list[MigrationHistoryEntry]],
)
async def migration_jobs_history(
    job_id: int,
    db_path: Path = Depends(get_db_path),  # noqa: B008
) -> ApiResponse[list[MigrationHistoryEntry]]:
    rows = migration_service.get_migration_history(db_path, migration_job_id=job_id)
    return ok([_to_history(r) for r in rows])
