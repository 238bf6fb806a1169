"""
Utility modules for Linkage-Net.
"""

from linkage_net.utils.config import (
    Config,
    EngineConfig,
    FoldingConfig,
    ProjectionConfig,
    SearchConfig,
    ToleranceConfig,
    get_default_config,
    load_config,
    save_config,
)

__all__ = [
    "Config",
    "EngineConfig",
    "FoldingConfig",
    "ProjectionConfig",
    "SearchConfig",
    "ToleranceConfig",
    "get_default_config",
    "load_config",
    "save_config",
]
