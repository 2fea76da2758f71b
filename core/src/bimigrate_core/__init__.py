from bimigrate_core.config import CoreConfig, load_core_config
from bimigrate_core.home import BiMigratePaths, ensure_bimigrate_layout, resolve_bimigrate_home

__version__ = "0.1.0"

__all__ = [
    "BiMigratePaths",
    "CoreConfig",
    "__version__",
    "ensure_bimigrate_layout",
    "load_core_config",
    "resolve_bimigrate_home",
]
