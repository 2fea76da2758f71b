from __future__ import annotations

MIGRATIONS: list[tuple[str, str]] = [
    (
        "0001_init",
        """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS connections (
    connection_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    bi_tool TEXT NOT NULL CHECK (bi_tool IN ('tableau', 'powerbi', 'looker')),
    connection_url TEXT NOT NULL,
    credentials_encrypted TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'inactive'
        CHECK (status IN ('active', 'inactive', 'error')),
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    last_sync_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_connections_bi_tool ON connections(bi_tool);
CREATE INDEX IF NOT EXISTS idx_connections_status ON connections(status);

CREATE TABLE IF NOT EXISTS assets (
    asset_id INTEGER PRIMARY KEY AUTOINCREMENT,
    connection_id INTEGER NOT NULL,
    external_id TEXT NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    asset_type TEXT NOT NULL CHECK (asset_type IN ('report', 'dashboard', 'data_source')),
    metadata_json TEXT NOT NULL DEFAULT '{}',
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    UNIQUE(connection_id, external_id),
    FOREIGN KEY(connection_id) REFERENCES connections(connection_id) ON DELETE RESTRICT
);

CREATE INDEX IF NOT EXISTS idx_assets_connection_id ON assets(connection_id);
CREATE INDEX IF NOT EXISTS idx_assets_asset_type ON assets(asset_type);

CREATE TABLE IF NOT EXISTS migration_jobs (
    migration_job_id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    description TEXT,
    source_asset_ids_json TEXT NOT NULL,
    target_databricks_asset_type TEXT NOT NULL CHECK (
        target_databricks_asset_type IN (
            'unity_catalog_metric_view', 'ai_bi_dashboard', 'ai_bi_genie_space'
        )
    ),
    status TEXT NOT NULL DEFAULT 'pending' CHECK (
        status IN ('pending', 'in_progress', 'completed', 'failed', 'cancelled')
    ),
    transformation_config_json TEXT,
    mapping_config_json TEXT,
    error_message TEXT,
    progress_percentage INTEGER NOT NULL DEFAULT 0
        CHECK (progress_percentage BETWEEN 0 AND 100),
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    started_at TEXT,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_migration_jobs_status ON migration_jobs(status);
CREATE INDEX IF NOT EXISTS idx_migration_jobs_target
    ON migration_jobs(target_databricks_asset_type);

CREATE TABLE IF NOT EXISTS migration_history (
    history_id INTEGER PRIMARY KEY AUTOINCREMENT,
    migration_job_id INTEGER NOT NULL,
    status TEXT NOT NULL CHECK (
        status IN ('pending', 'in_progress', 'completed', 'failed', 'cancelled')
    ),
    message TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    FOREIGN KEY(migration_job_id) REFERENCES migration_jobs(migration_job_id)
        ON DELETE RESTRICT
);

CREATE INDEX IF NOT EXISTS idx_migration_history_job_id
    ON migration_history(migration_job_id);
CREATE INDEX IF NOT EXISTS idx_migration_history_created_at
    ON migration_history(created_at);
""",
    )
]
