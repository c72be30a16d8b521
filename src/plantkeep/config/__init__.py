"""Application configuration helpers."""

from __future__ import annotations

from .backup import (
    ASSET_FOLDER,
    MANIFEST_NAME,
    SCHEMA_VERSION,
    BackupConfig,
    get_backup_config,
)
from .env import optional_log_level, optional_positive_float
from .errors import ConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ASSET_FOLDER",
    "MANIFEST_NAME",
    "SCHEMA_VERSION",
    "BackupConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "configure_logging",
    "get_backup_config",
    "get_database_config",
    "get_storage_config",
    "optional_log_level",
    "optional_positive_float",
]
