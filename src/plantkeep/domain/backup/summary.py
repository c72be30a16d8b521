"""Import summary accumulator."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import Any

from plantkeep.domain.model import EntityType, ImportMode

log = getLogger(__name__)

COUNTED_TYPES = (EntityType.LOCATION, EntityType.PLANT, EntityType.WATERING_EVENT)


@dataclass(slots=True)
class EntityCounts:
    """Per-entity outcome counters; every record seen lands in exactly one.

    ``updated`` counts records merged into an entity that already existed,
    whether or not any field changed.
    """

    created: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def seen(self) -> int:
        return self.created + self.updated + self.skipped


@dataclass(slots=True)
class ImportSummary:
    """Outcome of one import call, returned even when records were skipped."""

    mode: ImportMode
    counts: dict[EntityType, EntityCounts] = field(
        default_factory=lambda: {entity_type: EntityCounts() for entity_type in COUNTED_TYPES}
    )
    images_restored: int = 0
    notification_settings_updated: bool = False
    warnings: list[str] = field(default_factory=list[str])

    def created(self, entity_type: EntityType) -> None:
        self.counts[entity_type].created += 1

    def updated(self, entity_type: EntityType) -> None:
        self.counts[entity_type].updated += 1

    def skipped(self, entity_type: EntityType, reason: str) -> None:
        self.counts[entity_type].skipped += 1
        self.warn(reason)

    def warn(self, message: str) -> None:
        log.warning(message)
        self.warnings.append(message)

    @property
    def plants(self) -> EntityCounts:
        return self.counts[EntityType.PLANT]

    @property
    def locations(self) -> EntityCounts:
        return self.counts[EntityType.LOCATION]

    @property
    def watering_history(self) -> EntityCounts:
        return self.counts[EntityType.WATERING_EVENT]

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase summary exposed to clients."""

        return {
            "mode": self.mode.value,
            "plantsCreated": self.plants.created,
            "plantsUpdated": self.plants.updated,
            "plantsSkipped": self.plants.skipped,
            "locationsCreated": self.locations.created,
            "locationsSkipped": self.locations.skipped,
            "wateringHistoryCreated": self.watering_history.created,
            "wateringHistorySkipped": self.watering_history.skipped,
            "imagesRestored": self.images_restored,
            "notificationSettingsUpdated": self.notification_settings_updated,
            "warnings": list(self.warnings),
        }
