"""SQLAlchemy mapping metadata for the plantkeep domain model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)

from plantkeep.domain.model import (
    Location,
    NotificationSettings,
    Plant,
    User,
    WateringEvent,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

user_table = Table(
    "user_account",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("username", String, nullable=False, unique=True),
    Column("created_at", UTCDateTime(), nullable=False),
)

location_table = Table(
    "location",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("name", String, nullable=False),
    Column("is_default", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=False),
    UniqueConstraint("user_id", "name", name="uq_location_user_name"),
)

plant_table = Table(
    "plant",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("location_id", UUIDColumnType, ForeignKey("location.id"), nullable=False),
    Column("name", String, nullable=False),
    Column("species", String, nullable=True),
    Column("watering_frequency", Integer, nullable=False),
    Column("last_watered", UTCDateTime(), nullable=False),
    Column("notes", Text, nullable=True),
    Column("image_url", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=True),
    Index("ix_plant_user_created", "user_id", "created_at"),
)

watering_event_table = Table(
    "watering_event",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("user_id", UUIDColumnType, ForeignKey("user_account.id"), nullable=False),
    Column("plant_id", UUIDColumnType, ForeignKey("plant.id"), nullable=False),
    Column("watered_at", UTCDateTime(), nullable=False),
    Index("ix_watering_event_plant_watered", "plant_id", "watered_at"),
)

notification_settings_table = Table(
    "notification_settings",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column(
        "user_id",
        UUIDColumnType,
        ForeignKey("user_account.id"),
        nullable=False,
        unique=True,
    ),
    Column("enabled", Boolean, nullable=False, default=True),
    Column("pushover_enabled", Boolean, nullable=False, default=False),
    Column("email_enabled", Boolean, nullable=False, default=False),
    Column("email_address", String, nullable=True),
    Column("pushover_app_token", String, nullable=True),
    Column("pushover_user_key", String, nullable=True),
    Column("sendgrid_api_key", String, nullable=True),
    Column("last_updated", UTCDateTime(), nullable=False),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(User, user_table)
    mapper_registry.map_imperatively(Location, location_table)
    mapper_registry.map_imperatively(Plant, plant_table)
    mapper_registry.map_imperatively(WateringEvent, watering_event_table)
    mapper_registry.map_imperatively(NotificationSettings, notification_settings_table)

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
