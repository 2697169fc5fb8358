"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var
from .errors import ConfigurationError, InvalidConfigurationError
from .logging import configure_logging
from .reconciliation import ReconciliationDefaults, get_reconciliation_defaults
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "ReconciliationDefaults",
    "StorageConfig",
    "configure_logging",
    "get_database_config",
    "get_reconciliation_defaults",
    "get_storage_config",
    "optional_env_var",
]
