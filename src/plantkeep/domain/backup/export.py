"""Exporting a user's data as a backup archive.

The exporter numbers every entity with a fresh archive-local id and writes
plant photos next to the manifest as ``plant-{archiveId}-image.{ext}``, which
is the layout :func:`~plantkeep.domain.backup.service.import_backup` reads.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from plantkeep.config.backup import SCHEMA_VERSION
from plantkeep.domain.model import utcnow

from .archive import build_archive
from .assets import asset_prefix, image_extension

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from plantkeep.domain.ports.assets import AssetStore
    from plantkeep.domain.ports.unit_of_work import GardenUnitOfWork

log = getLogger(__name__)


def export_backup(
    *,
    user_id: UUID,
    unit_of_work_factory: Callable[[], GardenUnitOfWork],
    asset_store: AssetStore | None = None,
) -> bytes:
    """Return an archive holding all of ``user_id``'s plant-care data."""

    with unit_of_work_factory() as uow:
        repos = uow.repositories
        user = repos.users.get(user_id)
        if user is None:
            raise LookupError(f"Unknown user {user_id}")

        location_ids: dict[UUID, int] = {}
        location_names: dict[UUID, str] = {}
        locations: list[dict[str, Any]] = []
        for archive_id, location in enumerate(repos.locations.list_for_user(user_id), start=1):
            location_ids[location.id] = archive_id
            location_names[location.id] = location.name
            locations.append(
                {"id": archive_id, "name": location.name, "isDefault": location.is_default}
            )

        plant_ids: dict[UUID, int] = {}
        plants: list[dict[str, Any]] = []
        assets: dict[str, bytes] = {}
        for archive_id, plant in enumerate(repos.plants.list_for_user(user_id), start=1):
            plant_ids[plant.id] = archive_id
            plants.append(
                {
                    "id": archive_id,
                    "name": plant.name,
                    "species": plant.species,
                    "location": location_names.get(plant.location_id, ""),
                    "locationId": location_ids.get(plant.location_id),
                    "wateringFrequency": plant.watering_frequency,
                    "lastWatered": plant.last_watered.isoformat(),
                    "notes": plant.notes,
                    "imageUrl": plant.image_url,
                }
            )
            if plant.image_url and asset_store is not None:
                blob = asset_store.load(plant.image_url)
                if blob is None:
                    log.warning("Image %s of plant %s is missing", plant.image_url, plant.id)
                    continue
                name = f"{asset_prefix(archive_id)}image.{image_extension(plant.image_url)}"
                assets[name] = blob

        watering_history: list[dict[str, Any]] = []
        for event in repos.watering_events.list_for_user(user_id):
            plant_archive_id = plant_ids.get(event.plant_id)
            if plant_archive_id is None:
                continue
            watering_history.append(
                {
                    "id": len(watering_history) + 1,
                    "plantId": plant_archive_id,
                    "wateredAt": event.watered_at.isoformat(),
                }
            )

        manifest: dict[str, Any] = {
            "exportInfo": {
                "version": SCHEMA_VERSION,
                "exportedAt": utcnow().isoformat(),
                "username": user.username,
            },
            "locations": locations,
            "plants": plants,
            "wateringHistory": watering_history,
        }
        settings = repos.notification_settings.get_for_user(user_id)
        if settings is not None:
            manifest["notificationSettings"] = {
                "enabled": settings.enabled,
                "pushoverEnabled": settings.pushover_enabled,
                "emailEnabled": settings.email_enabled,
                "emailAddress": settings.email_address,
                "lastUpdated": settings.last_updated.isoformat(),
            }

    log.info(
        "Exported %s locations, %s plants, %s watering entries, %s images for user %s",
        len(locations),
        len(plants),
        len(watering_history),
        len(assets),
        user_id,
    )
    return build_archive(manifest, assets)
