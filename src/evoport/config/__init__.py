"""Convenience exports for the configuration package."""

from .constants import *  # noqa: F401,F403
from .loader import ConfigError, load_config, load_config_mapping, save_config
from .logging_conf import JSONFormatter, configure_logging
from .schemas import (
    AssetSelectionConfig,
    BaselineConfig,
    CrossoverConfig,
    DataWindow,
    GAConfig,
    MutationConfig,
    ParallelConfig,
    RunConfig,
    SelectionConfig,
    UniverseConfig,
)
from .settings import ENV_PREFIX, Settings, get_settings, reset_settings_cache

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "ENV_PREFIX",
    "Settings",
    "get_settings",
    "reset_settings_cache",
    # Schema classes
    "AssetSelectionConfig",
    "BaselineConfig",
    "CrossoverConfig",
    "DataWindow",
    "GAConfig",
    "MutationConfig",
    "ParallelConfig",
    "RunConfig",
    "SelectionConfig",
    "UniverseConfig",
    # Loader functions
    "load_config",
    "load_config_mapping",
    "save_config",
    "ConfigError",
]
