"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from plantkeep.adapters.assets import FileSystemAssetStore
from plantkeep.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyGardenUnitOfWork,
    is_started,
    startup,
)
from plantkeep.config import get_backup_config, get_storage_config
from plantkeep.domain.backup import export_backup, import_backup
from plantkeep.domain.model import ImportMode, User
from plantkeep.domain.ports.unit_of_work import GardenUnitOfWork

if TYPE_CHECKING:
    from pathlib import Path
    from uuid import UUID

    from plantkeep.domain.backup import ImportSummary
    from plantkeep.domain.ports.assets import AssetStore

UnitOfWorkFactory = Callable[[], GardenUnitOfWork]


log = getLogger(__name__)


def _ensure_started() -> None:
    if not is_started():
        startup()


def _default_asset_store() -> FileSystemAssetStore:
    return FileSystemAssetStore(get_storage_config().asset_path())


def create_user(
    *,
    username: str,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> User:
    """Create and persist a user account."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyGardenUnitOfWork
    with effective_uow() as uow:
        if uow.repositories.users.get_by_username(username) is not None:
            raise ValueError(f"Username {username!r} is already taken")
        user = User(username=username)
        uow.repositories.users.add(user)
        uow.commit()
    log.info("Created user %s (%s)", user.username, user.id)
    return user


def import_backup_file(
    path: Path,
    *,
    user_id: UUID,
    mode: ImportMode | str = ImportMode.MERGE,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    asset_store: AssetStore | None = None,
) -> ImportSummary:
    """Import the backup archive at ``path`` into ``user_id``'s account."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyGardenUnitOfWork
    effective_store = asset_store or _default_asset_store()
    log.info("Starting backup import: path=%s, user=%s, mode=%s", path, user_id, mode)

    summary = import_backup(
        path.read_bytes(),
        mode=mode,
        user_id=user_id,
        unit_of_work_factory=effective_uow,
        asset_store=effective_store,
        config=get_backup_config(),
    )

    log.info(
        f"Finished backup import: plants={summary.plants.created}/{summary.plants.updated}/"
        f"{summary.plants.skipped}, images={summary.images_restored}, "
        f"warnings={len(summary.warnings)}"
    )
    return summary


def export_backup_file(
    path: Path,
    *,
    user_id: UUID,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    asset_store: AssetStore | None = None,
) -> Path:
    """Write ``user_id``'s data as a backup archive to ``path``."""

    if unit_of_work_factory is None:
        _ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyGardenUnitOfWork
    effective_store = asset_store or _default_asset_store()

    data = export_backup(
        user_id=user_id,
        unit_of_work_factory=effective_uow,
        asset_store=effective_store,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    log.info("Wrote backup for user %s to %s (%s bytes)", user_id, path, len(data))
    return path
