"""Ports for persisting user-owned plant-care data.

Every query takes the owning ``user_id`` explicitly; there is no ambient
"current user". Adapters raise
:class:`~plantkeep.domain.backup.errors.PersistenceError` when a single write
fails so that callers can isolate the failure to that record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from plantkeep.domain.model import (
    Location,
    NotificationSettings,
    Plant,
    User,
    WateringEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class UserRepository(Repository[User], Protocol):
    """Persistence contract for user accounts."""

    def get(self, user_id: UUID) -> User | None: ...

    def get_by_username(self, username: str) -> User | None: ...


@runtime_checkable
class OwnedEntityRepository[TEntity](Repository[TEntity], Protocol):
    """Repository contract for entities scoped to one user."""

    def list_for_user(self, user_id: UUID) -> Sequence[TEntity]:
        """Return the user's entities ordered by creation time, then id.

        Watering events have no creation time and are ordered by when the
        plant was watered instead.
        """
        ...

    def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete every entity of this type owned by the user; return the count."""
        ...


@runtime_checkable
class LocationRepository(OwnedEntityRepository[Location], Protocol):
    """Repository contract for locations."""


@runtime_checkable
class PlantRepository(OwnedEntityRepository[Plant], Protocol):
    """Repository contract for plants."""

    def get(self, plant_id: UUID) -> Plant | None: ...

    def update(self, entity: Plant) -> None: ...


@runtime_checkable
class WateringEventRepository(OwnedEntityRepository[WateringEvent], Protocol):
    """Repository contract for watering events."""


@runtime_checkable
class NotificationSettingsRepository(Protocol):
    """Repository contract for the single settings row per user."""

    def get_for_user(self, user_id: UUID) -> NotificationSettings | None: ...

    def save(self, settings: NotificationSettings) -> None: ...
