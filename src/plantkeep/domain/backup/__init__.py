"""Backup export and reconciliation core.

Import flow:
1) extract the ZIP container into a manifest and named assets
2) validate the manifest into typed records, collecting per-record errors
3) reconcile records into live data in dependency order (locations, plants,
   images, watering events, preferences), remapping archive-local ids
4) report counts and warnings in an :class:`ImportSummary`
"""

from __future__ import annotations

from .archive import ExtractedArchive, build_archive, extract_archive
from .errors import (
    BackupError,
    PersistenceError,
    ReferentialError,
    StructuralError,
    ValidationError,
)
from .export import export_backup
from .identifiers import IdentifierMap
from .reconcile import Reconciler, reconcile
from .service import AccountLocks, import_backup
from .summary import EntityCounts, ImportSummary
from .validation import ValidatedManifest, validate_manifest

__all__ = [
    "AccountLocks",
    "BackupError",
    "EntityCounts",
    "ExtractedArchive",
    "IdentifierMap",
    "ImportSummary",
    "PersistenceError",
    "Reconciler",
    "ReferentialError",
    "StructuralError",
    "ValidatedManifest",
    "ValidationError",
    "build_archive",
    "export_backup",
    "extract_archive",
    "import_backup",
    "reconcile",
    "validate_manifest",
]
