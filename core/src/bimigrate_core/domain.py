from __future__ import annotations

from typing import Final, Literal, get_args

BiTool = Literal["tableau", "powerbi", "looker"]
ConnectionStatus = Literal["active", "inactive", "error"]
AssetType = Literal["report", "dashboard", "data_source"]
DatabricksAssetType = Literal[
    "unity_catalog_metric_view",
    "ai_bi_dashboard",
    "ai_bi_genie_space",
]
MigrationStatus = Literal["pending", "in_progress", "completed", "failed", "cancelled"]

BI_TOOLS: Final[tuple[str, ...]] = get_args(BiTool)
CONNECTION_STATUSES: Final[tuple[str, ...]] = get_args(ConnectionStatus)
ASSET_TYPES: Final[tuple[str, ...]] = get_args(AssetType)
DATABRICKS_ASSET_TYPES: Final[tuple[str, ...]] = get_args(DatabricksAssetType)
MIGRATION_STATUSES: Final[tuple[str, ...]] = get_args(MigrationStatus)

TERMINAL_STATUSES: Final[frozenset[str]] = frozenset({"completed", "failed", "cancelled"})
CANCELLABLE_STATUSES: Final[frozenset[str]] = frozenset({"pending", "in_progress"})
