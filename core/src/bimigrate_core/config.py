from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from bimigrate_core.home import BiMigratePaths, anchor_path

BIND_ENV_VAR = "BIMIGRATE_BIND"
PORT_ENV_VAR = "BIMIGRATE_PORT"


class NetworkConfig(BaseModel):
    bind_host: str = Field(default="127.0.0.1", description="Interface the API listens on.")
    core_port: int = Field(default=2022, ge=1, le=65535)


class PathOverrides(BaseModel):
    """Optional relocations of the data directories; relative values sit under the home."""

    db_dir: str | None = None
    logs_dir: str | None = None


class LoggingConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    max_size_mb: int = Field(default=10, ge=1, description="Size at which core.log rotates.")
    backup_count: int = Field(default=5, ge=1, description="Rotated files kept beside core.log.")

    @property
    def level_no(self) -> int:
        return logging.getLevelName(self.level)


class CoreConfig(BaseModel):
    version: str = "1"
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    paths: PathOverrides = Field(default_factory=PathOverrides)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_core_config(paths: BiMigratePaths) -> CoreConfig:
    """Read `config/core.json`, falling back to defaults when the file is absent.

    A malformed file raises pydantic's `ValidationError` rather than being ignored.
    """

    config_path = paths.core_config_path
    if not config_path.exists():
        return CoreConfig()
    return CoreConfig.model_validate_json(config_path.read_text(encoding="utf-8"))


def write_core_config(paths: BiMigratePaths, config: CoreConfig) -> None:
    paths.config_dir.mkdir(parents=True, exist_ok=True)
    paths.core_config_path.write_text(
        config.model_dump_json(indent=2, exclude_none=True) + "\n", encoding="utf-8"
    )


def apply_env_overrides(
    config: CoreConfig, environ: Mapping[str, str] | None = None
) -> CoreConfig:
    """Return a copy of `config` with `BIMIGRATE_BIND` / `BIMIGRATE_PORT` applied."""

    env = os.environ if environ is None else environ
    network = config.network.model_dump()

    bind = (env.get(BIND_ENV_VAR) or "").strip()
    if bind:
        network["bind_host"] = bind

    port = (env.get(PORT_ENV_VAR) or "").strip()
    if port:
        network["core_port"] = port

    return config.model_copy(update={"network": NetworkConfig.model_validate(network)})


def resolve_configured_paths(paths: BiMigratePaths, config: CoreConfig) -> BiMigratePaths:
    """Apply the `paths` overrides and make sure the target directories exist.

    Only the database and log directories move; `config_dir` always stays under the
    home, since it is where the overrides are read from.
    """

    def _relocated(raw: str | None, default: Path) -> Path:
        if raw is None or not raw.strip():
            return default
        return anchor_path(raw.strip(), paths.home)

    db_dir = _relocated(config.paths.db_dir, paths.db_dir)
    logs_dir = _relocated(config.paths.logs_dir, paths.logs_dir)

    for directory in (db_dir, logs_dir):
        directory.mkdir(parents=True, exist_ok=True)

    return BiMigratePaths(
        home=paths.home,
        db_dir=db_dir,
        logs_dir=logs_dir,
        config_dir=paths.config_dir,
    )
