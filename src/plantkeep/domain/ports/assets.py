"""Port for persisting binary assets such as plant photos."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID


@runtime_checkable
class AssetStore(Protocol):
    """Durable blob storage returning opaque references."""

    def save(self, user_id: UUID, name: str, data: bytes) -> str:
        """Persist ``data`` under ``name`` for the user and return its reference."""
        ...

    def load(self, reference: str) -> bytes | None:
        """Return the blob behind ``reference`` or ``None`` if it is gone."""
        ...
