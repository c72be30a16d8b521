"""Public domain model surface."""

from __future__ import annotations

from plantkeep.domain.model.base import Entity, OwnedEntity, as_utc, new_id, utcnow
from plantkeep.domain.model.enums import EntityType, ImportMode
from plantkeep.domain.model.garden import Location, NotificationSettings, Plant, WateringEvent
from plantkeep.domain.model.user import User

__all__ = [
    "Entity",
    "EntityType",
    "ImportMode",
    "Location",
    "NotificationSettings",
    "OwnedEntity",
    "Plant",
    "User",
    "WateringEvent",
    "as_utc",
    "new_id",
    "utcnow",
]
