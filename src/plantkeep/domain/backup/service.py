"""Application service for importing a backup archive."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from plantkeep.config.backup import BackupConfig
from plantkeep.domain.model import ImportMode

from .archive import extract_archive
from .reconcile import reconcile
from .validation import validate_manifest

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from uuid import UUID

    from plantkeep.domain.ports.assets import AssetStore
    from plantkeep.domain.ports.unit_of_work import GardenUnitOfWork

    from .summary import ImportSummary

log = getLogger(__name__)


class AccountLocks:
    """One lock per account so that imports for the same user never interleave.

    A lock lives only while some caller holds or waits for it, so the table
    stays as small as the number of accounts importing right now.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[UUID, threading.Lock] = {}
        self._waiters: dict[UUID, int] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, user_id: UUID) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(user_id, threading.Lock())
            self._waiters[user_id] = self._waiters.get(user_id, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._waiters[user_id] -= 1
                if not self._waiters[user_id]:
                    del self._waiters[user_id]
                    del self._locks[user_id]


ACCOUNT_LOCKS = AccountLocks()


def import_backup(
    data: bytes,
    *,
    mode: ImportMode | str,
    user_id: UUID,
    unit_of_work_factory: Callable[[], GardenUnitOfWork],
    asset_store: AssetStore | None = None,
    config: BackupConfig | None = None,
    locks: AccountLocks = ACCOUNT_LOCKS,
) -> ImportSummary:
    """Extract, validate and reconcile an archive for ``user_id``.

    Structural problems raise :class:`StructuralError` before anything is
    written. Everything else is reported in the returned summary. The whole
    reconciliation runs in one unit of work that commits once at the end, so
    an unexpected failure rolls back a replace-mode deletion as well.
    """

    effective_mode = ImportMode(mode)
    effective_config = config or BackupConfig()

    archive = extract_archive(
        data,
        max_bytes=effective_config.max_archive_bytes,
        max_expanded_bytes=effective_config.max_expanded_bytes,
    )
    manifest = validate_manifest(archive.manifest, schema_version=effective_config.schema_version)
    log.info(
        "Validated backup: %s plants, %s locations, %s watering entries, %s assets, %s errors",
        len(manifest.plants),
        len(manifest.locations),
        len(manifest.watering_history),
        len(archive.assets),
        len(manifest.errors),
    )

    with locks.hold(user_id), unit_of_work_factory() as uow:
        if uow.repositories.users.get(user_id) is None:
            raise LookupError(f"Unknown user {user_id}")
        summary = reconcile(
            manifest,
            archive.assets,
            mode=effective_mode,
            user_id=user_id,
            repositories=uow.repositories,
            asset_store=asset_store,
            unreadable_assets=archive.unreadable_assets,
        )
        uow.commit()

    return summary
