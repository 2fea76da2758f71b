"""Simulated BI-tool integrations.

These stand in for real Tableau / Power BI / Looker clients. The decision logic in
`probe_connection` is the contract tests rely on; the generated records in
`discover_assets` are placeholders.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from bimigrate_core.db.assets import NewAsset
from bimigrate_core.db.connections import ConnectionRow
from bimigrate_core.db.ids import new_external_id

# Substring of the lower-cased connection name -> simulated failure message.
_SIMULATED_FAILURES: tuple[tuple[str, str], ...] = (
    ("invalid", "Authentication failed"),
    ("network", "Network connection failed"),
    ("timeout", "Connection timeout"),
)


@dataclass(frozen=True)
class ProbeResult:
    success: bool
    message: str


def probe_connection(connection: ConnectionRow) -> ProbeResult:
    name = connection.name.lower()
    for needle, message in _SIMULATED_FAILURES:
        if needle in name:
            return ProbeResult(success=False, message=message)

    return ProbeResult(
        success=True,
        message=(
            f"Successfully connected to {connection.bi_tool} at {connection.connection_url}"
        ),
    )


def discover_assets(connection: ConnectionRow) -> list[NewAsset]:
    now = datetime.now(UTC)
    stamp = now.strftime("%Y%m%d%H%M%S%f")
    base_url = connection.connection_url.rstrip("/")

    return [
        NewAsset(
            external_id=new_external_id("report"),
            name=f"Synced Report {stamp}",
            description="A report synced from the BI tool",
            asset_type="report",
            metadata={
                "owner": "system",
                "last_modified": now.isoformat(),
                "source_url": f"{base_url}/reports/1",
                "bi_tool": connection.bi_tool,
            },
        ),
        NewAsset(
            external_id=new_external_id("dashboard"),
            name=f"Synced Dashboard {stamp}",
            description="A dashboard synced from the BI tool",
            asset_type="dashboard",
            metadata={
                "owner": "system",
                "last_modified": now.isoformat(),
                "source_url": f"{base_url}/dashboards/1",
                "bi_tool": connection.bi_tool,
            },
        ),
    ]
