"""Backup archive configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import optional_positive_float

MANIFEST_NAME: Final[str] = "backup.json"
ASSET_FOLDER: Final[str] = "images"
SCHEMA_VERSION: Final[str] = "1.0"
DEFAULT_MAX_ARCHIVE_MB: Final[float] = 100.0
DEFAULT_MAX_EXPANDED_MB: Final[float] = 500.0

_MB: Final[int] = 1024 * 1024


@dataclass(frozen=True, slots=True)
class BackupConfig:
    """Limits and format constants for backup archives.

    ``max_archive_bytes`` bounds the uploaded ZIP itself and
    ``max_expanded_bytes`` bounds the total size of the members read from it.
    """

    schema_version: str = SCHEMA_VERSION
    max_archive_bytes: int = int(DEFAULT_MAX_ARCHIVE_MB * _MB)
    max_expanded_bytes: int = int(DEFAULT_MAX_EXPANDED_MB * _MB)


def get_backup_config() -> BackupConfig:
    max_mb = optional_positive_float("PLANTKEEP_MAX_ARCHIVE_MB", DEFAULT_MAX_ARCHIVE_MB)
    expanded_mb = optional_positive_float("PLANTKEEP_MAX_EXPANDED_MB", DEFAULT_MAX_EXPANDED_MB)
    return BackupConfig(
        max_archive_bytes=int(max_mb * _MB),
        max_expanded_bytes=int(expanded_mb * _MB),
    )
