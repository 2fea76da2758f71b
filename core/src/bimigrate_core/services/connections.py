from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from bimigrate_core.db import connections as connections_db
from bimigrate_core.db.assets import AssetRow, record_synced_assets
from bimigrate_core.db.connections import ConnectionRow
from bimigrate_core.domain import BI_TOOLS, CONNECTION_STATUSES
from bimigrate_core.errors import InvalidStateError, NotFoundError, ValidationError
from bimigrate_core.services.simulation import discover_assets, probe_connection

logger = logging.getLogger(__name__)

_URL_ADAPTER = TypeAdapter(AnyUrl)


def is_valid_url(raw: str) -> bool:
    try:
        _URL_ADAPTER.validate_python(raw)
    except PydanticValidationError:
        return False
    return True


def _require_text(field: str, value: str | None) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty", details={"field": field})
    return value


def _require_url(value: str | None) -> str:
    url = _require_text("connection_url", value)
    if not is_valid_url(url):
        raise ValidationError(
            f"connection_url is not a valid URL: {url!r}",
            details={"field": "connection_url", "value": url},
        )
    return url


def _require_choice(field: str, value: str, choices: tuple[str, ...]) -> str:
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of {list(choices)}, got {value!r}",
            details={"field": field, "value": value},
        )
    return value


def create_connection(
    db_path,
    *,
    name: str,
    bi_tool: str,
    connection_url: str,
    credentials: str,
) -> ConnectionRow:
    row = connections_db.create_connection(
        db_path,
        name=_require_text("name", name),
        bi_tool=_require_choice("bi_tool", bi_tool, BI_TOOLS),
        connection_url=_require_url(connection_url),
        credentials=_require_text("credentials", credentials),
    )
    logger.info("Created %s connection %s (%s)", row.bi_tool, row.connection_id, row.name)
    return row


def get_connection(db_path, *, connection_id: int) -> ConnectionRow:
    row = connections_db.get_connection(db_path, connection_id=connection_id)
    if row is None:
        raise NotFoundError(f"Connection with id {connection_id} not found")
    return row


def get_connections(
    db_path,
    *,
    bi_tool: str | None = None,
    status: str | None = None,
) -> list[ConnectionRow]:
    return connections_db.list_connections(db_path, bi_tool=bi_tool, status=status)


def update_connection(
    db_path,
    *,
    connection_id: int,
    name: str | None = None,
    connection_url: str | None = None,
    credentials: str | None = None,
    status: str | None = None,
) -> ConnectionRow:
    if connections_db.get_connection(db_path, connection_id=connection_id) is None:
        raise NotFoundError(f"Connection with id {connection_id} not found")

    if name is not None:
        _require_text("name", name)
    if connection_url is not None:
        _require_url(connection_url)
    if credentials is not None:
        _require_text("credentials", credentials)
    if status is not None:
        _require_choice("status", status, CONNECTION_STATUSES)

    row = connections_db.patch_connection(
        db_path,
        connection_id=connection_id,
        name=name,
        connection_url=connection_url,
        credentials=credentials,
        status=status,
    )
    if row is None:
        raise NotFoundError(f"Connection with id {connection_id} not found")
    return row


@dataclass(frozen=True)
class ConnectionTestResult:
    success: bool
    message: str


def _check_connection(db_path, connection_id: int) -> ConnectionTestResult:
    connection = connections_db.get_connection(db_path, connection_id=connection_id)
    if connection is None:
        return ConnectionTestResult(success=False, message="Connection not found")

    if connection.status == "error":
        return ConnectionTestResult(success=False, message="Connection is in error state")

    def _fail(message: str) -> ConnectionTestResult:
        connections_db.set_connection_status(db_path, connection_id=connection_id, status="error")
        return ConnectionTestResult(success=False, message=message)

    if not is_valid_url(connection.connection_url):
        return _fail("Invalid connection URL")

    if not connection.credentials.strip():
        return _fail("Missing or invalid credentials")

    probe = probe_connection(connection)
    if not probe.success:
        return _fail(probe.message)

    connections_db.set_connection_status(
        db_path, connection_id=connection_id, status="active", mark_synced=True
    )
    return ConnectionTestResult(success=True, message=probe.message)


def test_connection(db_path, *, connection_id: int) -> ConnectionTestResult:
    """Run the (simulated) connectivity check and record its outcome.

    Never raises: unexpected failures are reported in the result and the
    connection is marked `error` on a best-effort basis.
    """

    try:
        result = _check_connection(db_path, connection_id)
    except Exception as e:
        logger.exception("Connection test for %s failed unexpectedly", connection_id)
        try:
            connections_db.set_connection_status(
                db_path, connection_id=connection_id, status="error"
            )
        except Exception:
            logger.exception("Failed to mark connection %s as error", connection_id)
        return ConnectionTestResult(success=False, message=f"Connection test failed: {e}")

    logger.info(
        "Connection test for %s: success=%s (%s)", connection_id, result.success, result.message
    )
    return result


def sync_assets(db_path, *, connection_id: int) -> list[AssetRow]:
    connection = connections_db.get_connection(db_path, connection_id=connection_id)
    if connection is None:
        raise NotFoundError(f"Connection with ID {connection_id} not found")

    if connection.status != "active":
        raise InvalidStateError(
            f"Connection {connection_id} is not active. Status: {connection.status}",
            details={"connection_id": connection_id, "status": connection.status},
        )

    discovered = discover_assets(connection)
    rows = record_synced_assets(db_path, connection_id=connection_id, assets=discovered)
    logger.info("Synced %d assets from connection %s", len(rows), connection_id)
    return rows
