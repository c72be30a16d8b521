"""Domain port definitions for adapters."""

from __future__ import annotations

from .assets import AssetStore
from .persistence import (
    LocationRepository,
    NotificationSettingsRepository,
    OwnedEntityRepository,
    PlantRepository,
    Repository,
    UserRepository,
    WateringEventRepository,
)
from .unit_of_work import (
    GardenRepositories,
    GardenUnitOfWork,
    RepositoryCollection,
    UnitOfWork,
)

__all__ = [
    "AssetStore",
    "GardenRepositories",
    "GardenUnitOfWork",
    "LocationRepository",
    "NotificationSettingsRepository",
    "OwnedEntityRepository",
    "PlantRepository",
    "Repository",
    "RepositoryCollection",
    "UnitOfWork",
    "UserRepository",
    "WateringEventRepository",
]
