"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, positive_float_env_var
from .errors import ConfigurationError
from .logging import configure_logging
from .materialization import MaterializationConfig, get_materialization_config
from .storage import StorageConfig, get_data_dir, get_storage_config

__all__ = [
    "ConfigurationError",
    "MaterializationConfig",
    "StorageConfig",
    "configure_logging",
    "get_data_dir",
    "get_materialization_config",
    "get_storage_config",
    "optional_env_var",
    "positive_float_env_var",
]
