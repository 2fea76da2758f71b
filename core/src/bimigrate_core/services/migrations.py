"""Migration job lifecycle.

Statuses move `pending -> in_progress -> completed | failed | cancelled`, and a job
may be cancelled straight from `pending`. Terminal statuses never change again.

Timestamp rules:
- `started_at` is filled the first time a job enters `in_progress`.
- `completed_at` is filled the first time a job enters a terminal status.
Neither is ever cleared. Every status change appends one history entry, written in
the same transaction as the change itself.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Final, NoReturn

from bimigrate_core.db import migration_jobs as jobs_db
from bimigrate_core.db.assets import existing_asset_ids
from bimigrate_core.db.migration_jobs import HistoryAppend, MigrationHistoryRow, MigrationJobRow
from bimigrate_core.domain import (
    CANCELLABLE_STATUSES,
    DATABRICKS_ASSET_TYPES,
    MIGRATION_STATUSES,
    TERMINAL_STATUSES,
)
from bimigrate_core.errors import InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

CANCELLED_ERROR_MESSAGE: Final[str] = "Job cancelled by user"
CANCELLED_HISTORY_MESSAGE: Final[str] = "Migration job cancelled by user"


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final[Any] = _Unset()


def _require_config(field: str, value: Any) -> dict[str, Any] | None:
    if value is not None and not isinstance(value, dict):
        raise ValidationError(
            f"{field} must be an object or null", details={"field": field}
        )
    return value


def _require_progress(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= 100:
        raise ValidationError(
            f"progress_percentage must be an integer between 0 and 100, got {value!r}",
            details={"field": "progress_percentage", "value": value},
        )
    return value


def _missing_ids(requested: Sequence[int], found: set[int]) -> list[int]:
    seen: set[int] = set()
    missing: list[int] = []
    for asset_id in requested:
        if asset_id in found or asset_id in seen:
            continue
        seen.add(asset_id)
        missing.append(asset_id)
    return missing


def create_migration_job(
    db_path,
    *,
    name: str,
    description: str | None,
    source_asset_ids: Sequence[int],
    target_databricks_asset_type: str,
    transformation_config: dict[str, Any] | None = None,
    mapping_config: dict[str, Any] | None = None,
) -> MigrationJobRow:
    if not name or not name.strip():
        raise ValidationError("name must not be empty", details={"field": "name"})

    if not source_asset_ids:
        raise ValidationError(
            "source_asset_ids must contain at least one asset ID",
            details={"field": "source_asset_ids"},
        )

    if target_databricks_asset_type not in DATABRICKS_ASSET_TYPES:
        raise ValidationError(
            "target_databricks_asset_type must be one of "
            f"{list(DATABRICKS_ASSET_TYPES)}, got {target_databricks_asset_type!r}",
            details={"field": "target_databricks_asset_type"},
        )

    _require_config("transformation_config", transformation_config)
    _require_config("mapping_config", mapping_config)

    found = existing_asset_ids(db_path, asset_ids=source_asset_ids)
    missing = _missing_ids(source_asset_ids, found)
    if missing:
        raise ValidationError(
            "The following asset IDs do not exist: " + ", ".join(str(i) for i in missing),
            details={"missing_asset_ids": missing},
        )

    row = jobs_db.create_migration_job(
        db_path,
        name=name,
        description=description,
        source_asset_ids=list(source_asset_ids),
        target_databricks_asset_type=target_databricks_asset_type,
        transformation_config=transformation_config,
        mapping_config=mapping_config,
    )
    logger.info(
        "Created migration job %s (%d assets -> %s)",
        row.migration_job_id,
        len(row.source_asset_ids),
        row.target_databricks_asset_type,
    )
    return row


def get_migration_job(db_path, *, migration_job_id: int) -> MigrationJobRow:
    row = jobs_db.get_migration_job(db_path, migration_job_id=migration_job_id)
    if row is None:
        raise NotFoundError(f"Migration job with id {migration_job_id} not found")
    return row


def get_migration_jobs(
    db_path,
    *,
    status: str | None = None,
    target_databricks_asset_type: str | None = None,
) -> list[MigrationJobRow]:
    return jobs_db.list_migration_jobs(
        db_path,
        status=status,
        target_databricks_asset_type=target_databricks_asset_type,
    )


def _raise_lost_race(db_path, migration_job_id: int, expected: str) -> NoReturn:
    latest = jobs_db.get_migration_job(db_path, migration_job_id=migration_job_id)
    if latest is None:
        raise NotFoundError(f"Migration job with id {migration_job_id} not found")
    raise InvalidStateError(
        f"Migration job {migration_job_id} changed status from '{expected}' "
        f"to '{latest.status}' during the update",
        details={"migration_job_id": migration_job_id, "status": latest.status},
    )


def update_migration_job(
    db_path,
    *,
    migration_job_id: int,
    status: str | None = UNSET,
    error_message: str | None = UNSET,
    progress_percentage: int | None = UNSET,
    transformation_config: dict[str, Any] | None = UNSET,
    mapping_config: dict[str, Any] | None = UNSET,
) -> MigrationJobRow:
    """Apply a partial update; only arguments that are passed are written.

    `status` and `progress_percentage` are not nullable, so passing None for them
    is the same as leaving them out. The nullable fields accept None to clear.
    """

    current = jobs_db.get_migration_job(db_path, migration_job_id=migration_job_id)
    if current is None:
        raise NotFoundError(f"Migration job with id {migration_job_id} not found")

    changes: dict[str, Any] = {}
    status_changed = False

    if status is not UNSET and status is not None:
        if status not in MIGRATION_STATUSES:
            raise ValidationError(
                f"status must be one of {list(MIGRATION_STATUSES)}, got {status!r}",
                details={"field": "status", "value": status},
            )
        if status != current.status:
            if current.status in TERMINAL_STATUSES:
                raise InvalidStateError(
                    f"Cannot change status of migration job {migration_job_id} "
                    f"from '{current.status}' to '{status}': '{current.status}' is terminal",
                    details={"migration_job_id": migration_job_id, "status": current.status},
                )
            status_changed = True
        changes["status"] = status

    if error_message is not UNSET:
        changes["error_message"] = error_message

    if progress_percentage is not UNSET and progress_percentage is not None:
        changes["progress_percentage"] = _require_progress(progress_percentage)

    if transformation_config is not UNSET:
        changes["transformation_config"] = _require_config(
            "transformation_config", transformation_config
        )

    if mapping_config is not UNSET:
        changes["mapping_config"] = _require_config("mapping_config", mapping_config)

    history: HistoryAppend | None = None
    if status_changed:
        message = error_message if error_message is not UNSET and error_message else None
        history = HistoryAppend(status=status, message=message or f"Status changed to {status}")

    # A job that jumps straight from pending to a terminal status never gets a
    # started_at; only entering in_progress sets it.
    row = jobs_db.apply_job_update(
        db_path,
        migration_job_id=migration_job_id,
        expected_statuses={current.status},
        changes=changes,
        mark_started=status_changed and status == "in_progress",
        mark_completed=status_changed and status in TERMINAL_STATUSES,
        history=history,
    )
    if row is None:
        _raise_lost_race(db_path, migration_job_id, current.status)

    if status_changed:
        logger.info(
            "Migration job %s: %s -> %s", migration_job_id, current.status, row.status
        )
    return row


def cancel_migration_job(db_path, *, migration_job_id: int) -> MigrationJobRow:
    current = jobs_db.get_migration_job(db_path, migration_job_id=migration_job_id)
    if current is None:
        raise NotFoundError(f"Migration job with ID {migration_job_id} not found")

    if current.status not in CANCELLABLE_STATUSES:
        raise InvalidStateError(
            f"Cannot cancel migration job with status '{current.status}'. "
            "Only pending or in_progress jobs can be cancelled.",
            details={"migration_job_id": migration_job_id, "status": current.status},
        )

    row = jobs_db.apply_job_update(
        db_path,
        migration_job_id=migration_job_id,
        expected_statuses=CANCELLABLE_STATUSES,
        changes={"status": "cancelled", "error_message": CANCELLED_ERROR_MESSAGE},
        mark_completed=True,
        history=HistoryAppend(status="cancelled", message=CANCELLED_HISTORY_MESSAGE),
    )
    if row is None:
        _raise_lost_race(db_path, migration_job_id, current.status)

    logger.info("Migration job %s cancelled (was %s)", migration_job_id, current.status)
    return row


def get_migration_history(db_path, *, migration_job_id: int) -> list[MigrationHistoryRow]:
    return jobs_db.list_migration_history(db_path, migration_job_id=migration_job_id)
