"""Archive-local to live identifier table for one reconciliation call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from plantkeep.domain.model import EntityType

type IdentifierKey = tuple[EntityType, int]


@dataclass(slots=True)
class IdentifierMap:
    """Maps ``(entity type, archive id)`` to the live id assigned on restore.

    Entries are write-once: recording a different live id for a key that is
    already present is a programming error.
    """

    _entries: dict[IdentifierKey, UUID] = field(default_factory=dict[IdentifierKey, "UUID"])

    def record(self, entity_type: EntityType, archive_id: int, live_id: UUID) -> None:
        key = (entity_type, archive_id)
        current = self._entries.get(key)
        if current is not None and current != live_id:
            raise ValueError(
                f"{entity_type.value} archive id {archive_id} already mapped to {current}"
            )
        self._entries[key] = live_id

    def resolve(self, entity_type: EntityType, archive_id: int | None) -> UUID | None:
        if archive_id is None:
            return None
        return self._entries.get((entity_type, archive_id))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
