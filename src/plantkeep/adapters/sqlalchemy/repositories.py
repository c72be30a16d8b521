"""Repository implementations backed by SQLAlchemy sessions.

Each write runs inside its own SAVEPOINT and is flushed immediately, so a
constraint violation undoes only that write and surfaces as
:class:`~plantkeep.domain.backup.errors.PersistenceError` while the
surrounding transaction stays usable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from plantkeep.adapters.sqlalchemy.mappings import (
    location_table,
    notification_settings_table,
    plant_table,
    user_table,
    watering_event_table,
)
from plantkeep.domain.backup.errors import PersistenceError
from plantkeep.domain.model import (
    Location,
    NotificationSettings,
    OwnedEntity,
    Plant,
    User,
    WateringEvent,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from plantkeep.domain.model import Entity


def _write(session: Session, entity: Entity, *, add: bool) -> None:
    try:
        with session.begin_nested():
            if add:
                session.add(entity)
            session.flush()
    except SQLAlchemyError as exc:
        raise PersistenceError(
            f"Could not store {entity.entity_type.value} {entity.id}: {exc.__class__.__name__}"
        ) from exc


class SqlAlchemyUserRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: User) -> None:
        _write(self.session, entity, add=True)

    def get(self, user_id: UUID) -> User | None:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(user_table.c.username == username)
        return self.session.execute(stmt).scalar_one_or_none()


class SqlAlchemyOwnedRepository[TEntity: OwnedEntity]:
    """Shared queries for entities scoped to a single user."""

    def __init__(self, session: Session, entity_cls: type[TEntity], table: Table) -> None:
        self.session = session
        self._entity_cls = entity_cls
        self._table = table

    def add(self, entity: TEntity) -> None:
        _write(self.session, entity, add=True)

    def list_for_user(self, user_id: UUID) -> Sequence[TEntity]:
        stmt = (
            select(self._entity_cls)
            .where(self._table.c.user_id == user_id)
            .order_by(*self._ordering())
        )
        return self.session.execute(stmt).scalars().all()

    def delete_all_for_user(self, user_id: UUID) -> int:
        entities = self.list_for_user(user_id)
        for entity in entities:
            self.session.delete(entity)
        self.session.flush()
        return len(entities)

    def _ordering(self) -> tuple[Any, ...]:
        return (self._table.c.created_at, self._table.c.id)


class SqlAlchemyLocationRepository(SqlAlchemyOwnedRepository[Location]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Location, location_table)


class SqlAlchemyPlantRepository(SqlAlchemyOwnedRepository[Plant]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, Plant, plant_table)

    def get(self, plant_id: UUID) -> Plant | None:
        return self.session.get(Plant, plant_id)

    def update(self, entity: Plant) -> None:
        _write(self.session, entity, add=False)


class SqlAlchemyWateringEventRepository(SqlAlchemyOwnedRepository[WateringEvent]):
    def __init__(self, session: Session) -> None:
        super().__init__(session, WateringEvent, watering_event_table)

    def _ordering(self) -> tuple[Any, ...]:
        # watering events carry no creation time of their own
        return (self._table.c.watered_at, self._table.c.id)


class SqlAlchemyNotificationSettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_for_user(self, user_id: UUID) -> NotificationSettings | None:
        stmt = select(NotificationSettings).where(
            notification_settings_table.c.user_id == user_id
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def save(self, settings: NotificationSettings) -> None:
        _write(self.session, settings, add=True)


if TYPE_CHECKING:
    from plantkeep.domain.ports.persistence import (
        LocationRepository,
        NotificationSettingsRepository,
        PlantRepository,
        UserRepository,
        WateringEventRepository,
    )

    _session_stub = cast("Session", object())
    _user_repo: UserRepository = SqlAlchemyUserRepository(_session_stub)
    _location_repo: LocationRepository = SqlAlchemyLocationRepository(_session_stub)
    _plant_repo: PlantRepository = SqlAlchemyPlantRepository(_session_stub)
    _event_repo: WateringEventRepository = SqlAlchemyWateringEventRepository(_session_stub)
    _settings_repo: NotificationSettingsRepository = SqlAlchemyNotificationSettingsRepository(
        _session_stub
    )
