"""Restoring exported plant images through the asset store."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping
    from uuid import UUID

    from plantkeep.domain.ports.assets import AssetStore

DEFAULT_IMAGE_EXTENSION: Final[str] = "jpg"

log = getLogger(__name__)


def asset_prefix(archive_id: int) -> str:
    """Return the name prefix shared by the assets of one archived plant."""

    return f"plant-{archive_id}-"


def find_asset(archive_id: int, assets: Mapping[str, bytes]) -> str | None:
    """Return the first asset name (sorted) that belongs to ``archive_id``."""

    prefix = asset_prefix(archive_id)
    for name in sorted(assets):
        if name.startswith(prefix) and len(name) > len(prefix):
            return name
    return None


def image_extension(name: str) -> str:
    suffix = PurePosixPath(name).suffix.lstrip(".").lower()
    return suffix or DEFAULT_IMAGE_EXTENSION


@dataclass(slots=True)
class AssetRestorer:
    """Persist archived assets for the user and hand back their references."""

    store: AssetStore
    user_id: UUID

    def restore(
        self,
        owner_old_id: int,
        owner_new_id: UUID,
        assets: Mapping[str, bytes],
    ) -> str | None:
        """Store the asset of ``owner_old_id`` as ``{owner_new_id}.{ext}``.

        Returns ``None`` when no asset matches or the store fails; never raises.
        """

        name = find_asset(owner_old_id, assets)
        if name is None:
            return None
        target = f"{owner_new_id}.{image_extension(name)}"
        try:
            return self.store.save(self.user_id, target, assets[name])
        except Exception:  # noqa: BLE001
            log.exception("Failed to store asset %s for plant %s", name, owner_new_id)
            return None
