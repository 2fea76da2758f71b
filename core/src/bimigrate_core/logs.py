from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from bimigrate_core.config import LoggingConfig
from bimigrate_core.home import BiMigratePaths

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILENAME = "core.log"

_HANDLER_NAME = "bimigrate-core-file"


def core_log_handler(paths: BiMigratePaths, settings: LoggingConfig) -> RotatingFileHandler:
    """Rotating handler for `<logs_dir>/core.log`, sized from config."""

    handler = RotatingFileHandler(
        paths.logs_dir / LOG_FILENAME,
        maxBytes=settings.max_size_mb * 1024 * 1024,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def attach_core_log(paths: BiMigratePaths, settings: LoggingConfig) -> None:
    """Route every module logger into core.log via the root logger.

    At most one core.log handler is installed. Re-attaching for the same file is a
    no-op; attaching for a different home swaps the old handler out.
    """

    root = logging.getLogger()
    root.setLevel(settings.level_no)

    target = os.path.abspath(paths.logs_dir / LOG_FILENAME)
    for existing in list(root.handlers):
        if existing.get_name() != _HANDLER_NAME:
            continue
        if getattr(existing, "baseFilename", None) == target:
            return
        root.removeHandler(existing)
        existing.close()

    root.addHandler(core_log_handler(paths, settings))
