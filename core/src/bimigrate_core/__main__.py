from __future__ import annotations

import logging

import uvicorn

from bimigrate_core.app import create_app
from bimigrate_core.config import apply_env_overrides, load_core_config, resolve_configured_paths
from bimigrate_core.home import ensure_bimigrate_layout, resolve_bimigrate_home
from bimigrate_core.logs import LOG_FORMAT, core_log_handler


def main() -> None:
    layout = ensure_bimigrate_layout(resolve_bimigrate_home())
    config = apply_env_overrides(load_core_config(layout))
    paths = resolve_configured_paths(layout, config)

    # Same file as the app lifespan uses, plus stderr for interactive runs.
    logging.basicConfig(
        level=config.logging.level_no,
        format=LOG_FORMAT,
        handlers=[core_log_handler(paths, config.logging), logging.StreamHandler()],
    )

    uvicorn.run(create_app(), host=config.network.bind_host, port=config.network.core_port)


if __name__ == "__main__":
    main()
