from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

HOME_ENV_VAR = "BIMIGRATE_HOME"

# Subdirectories created under the home on startup.
LAYOUT_DIRS: tuple[str, ...] = ("db", "logs", "config")


@dataclass(frozen=True)
class BiMigratePaths:
    home: Path
    db_dir: Path
    logs_dir: Path
    config_dir: Path

    @property
    def core_config_path(self) -> Path:
        return self.config_dir / "core.json"


def anchor_path(raw: str, base: Path) -> Path:
    """Expand `~` and resolve `raw`; relative values are taken from `base`."""

    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = base / candidate
    return candidate.resolve()


def _platform_default_home(env: Mapping[str, str]) -> Path:
    if sys.platform.startswith("win"):
        appdata = env.get("LOCALAPPDATA") or env.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Local"
        return base / "BiMigrate"

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "BiMigrate"

    xdg = env.get("XDG_DATA_HOME")
    base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / "bimigrate"


def resolve_bimigrate_home(environ: Mapping[str, str] | None = None) -> Path:
    """Locate the runtime home: `$BIMIGRATE_HOME`, else the per-user data dir.

    A relative `BIMIGRATE_HOME` is anchored at the user's home directory rather than
    the working directory, so the service finds the same data wherever it starts.
    """

    env = os.environ if environ is None else environ

    raw = (env.get(HOME_ENV_VAR) or "").strip()
    if raw:
        return anchor_path(raw, Path.home())
    return _platform_default_home(env).resolve()


def ensure_bimigrate_layout(home: Path) -> BiMigratePaths:
    dirs = {name: home / name for name in LAYOUT_DIRS}
    for path in (home, *dirs.values()):
        path.mkdir(parents=True, exist_ok=True)

    return BiMigratePaths(
        home=home,
        db_dir=dirs["db"],
        logs_dir=dirs["logs"],
        config_dir=dirs["config"],
    )
