"""User accounts."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import ClassVar

from plantkeep.domain.model.base import Entity, utcnow
from plantkeep.domain.model.enums import EntityType


@dataclass(eq=False, kw_only=True)
class User(Entity):
    ENTITY_TYPE: ClassVar[EntityType] = EntityType.USER

    username: str
    created_at: datetime = field(default_factory=utcnow)
