"""SQLAlchemy adapter package for plantkeep."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyLocationRepository,
    SqlAlchemyNotificationSettingsRepository,
    SqlAlchemyPlantRepository,
    SqlAlchemyUserRepository,
    SqlAlchemyWateringEventRepository,
)
from .unit_of_work import (
    SqlAlchemyGardenUnitOfWork,
    prepare_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyGardenUnitOfWork",
    "SqlAlchemyLocationRepository",
    "SqlAlchemyNotificationSettingsRepository",
    "SqlAlchemyPlantRepository",
    "SqlAlchemyUserRepository",
    "SqlAlchemyWateringEventRepository",
    "create_all_tables",
    "mapper_registry",
    "prepare_engine",
    "shutdown",
    "startup",
    "start_mappers",
]
