"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Discriminator for the entity kinds managed by backups."""

    USER = "user"
    LOCATION = "location"
    PLANT = "plant"
    WATERING_EVENT = "watering_event"
    NOTIFICATION_SETTINGS = "notification_settings"


class ImportMode(StrEnum):
    """Reconciliation strategy for an archive import."""

    MERGE = "merge"
    REPLACE = "replace"
