"""Plant-care entities owned by a user."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar
from uuid import UUID

from plantkeep.domain.model.base import OwnedEntity, as_utc, utcnow
from plantkeep.domain.model.enums import EntityType


@dataclass(eq=False, kw_only=True)
class Location(OwnedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.LOCATION

    name: str
    is_default: bool = False
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class Plant(OwnedEntity):
    """A plant kept by the user.

    ``location_id`` always points at a :class:`Location` of the same user.
    ``watering_frequency`` is expressed in days.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.PLANT

    name: str
    location_id: UUID
    watering_frequency: int
    last_watered: datetime = field(default_factory=utcnow)
    species: str | None = None
    notes: str | None = None
    image_url: str | None = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.watering_frequency < 1:
            raise ValueError("Watering frequency must be at least one day")
        self.last_watered = as_utc(self.last_watered)

    def apply_care_update(
        self,
        *,
        watering_frequency: int,
        notes: str | None,
        last_watered: datetime | None = None,
    ) -> None:
        """Overwrite the mutable care fields, keeping identity and creation time."""

        if watering_frequency < 1:
            raise ValueError("Watering frequency must be at least one day")
        self.watering_frequency = watering_frequency
        self.notes = notes
        if last_watered is not None:
            self.last_watered = as_utc(last_watered)
        self.updated_at = utcnow()


@dataclass(eq=False, kw_only=True)
class WateringEvent(OwnedEntity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.WATERING_EVENT

    plant_id: UUID
    watered_at: datetime

    def __post_init__(self) -> None:
        self.watered_at = as_utc(self.watered_at)


@dataclass(eq=False, kw_only=True)
class NotificationSettings(OwnedEntity):
    """Per-user notification preferences.

    The pushover and sendgrid fields are credentials: they are configured
    locally and never travel through backups.
    """

    ENTITY_TYPE: ClassVar[EntityType] = EntityType.NOTIFICATION_SETTINGS

    enabled: bool = True
    pushover_enabled: bool = False
    email_enabled: bool = False
    email_address: str | None = None

    pushover_app_token: str | None = field(default=None, repr=False)
    pushover_user_key: str | None = field(default=None, repr=False)
    sendgrid_api_key: str | None = field(default=None, repr=False)

    last_updated: datetime = field(default_factory=utcnow)

    def apply_preferences(
        self,
        *,
        enabled: bool,
        pushover_enabled: bool,
        email_enabled: bool,
        email_address: str | None,
    ) -> None:
        """Update the non-sensitive toggles and contact address."""

        self.enabled = enabled
        self.pushover_enabled = pushover_enabled
        self.email_enabled = email_enabled
        self.email_address = email_address
        self.last_updated = utcnow()
