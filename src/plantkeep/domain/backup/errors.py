"""Error taxonomy for backup import and export.

Only :class:`StructuralError` aborts an import. The other errors describe a
single record and end up as warnings in the import summary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from plantkeep.domain.model import EntityType


class BackupError(RuntimeError):
    """Base class for backup failures."""


class StructuralError(BackupError):
    """Archive unreadable, manifest absent, or export metadata invalid."""


class ValidationError(BackupError):
    """A single manifest record failed schema validation."""

    def __init__(
        self,
        entity_type: EntityType,
        index: int,
        messages: Sequence[str],
        *,
        label: str | None = None,
    ) -> None:
        self.entity_type = entity_type
        self.index = index
        self.messages = tuple(messages)
        self.label = label
        super().__init__(self.describe())

    def describe(self) -> str:
        subject = f"{self.entity_type.value} #{self.index}"
        if self.label:
            subject = f"{subject} '{self.label}'"
        return f"Invalid {subject}: {'; '.join(self.messages)}"


class ReferentialError(BackupError):
    """A record references a parent that was never restored."""


class PersistenceError(BackupError):
    """The storage or asset collaborator failed for a single record."""
