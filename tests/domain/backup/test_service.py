from __future__ import annotations

import io
import json
import threading
from uuid import uuid4
from zipfile import ZipFile

import pytest

from plantkeep.config.backup import BackupConfig
from plantkeep.domain.backup import AccountLocks, StructuralError, import_backup
from plantkeep.domain.model import ImportMode, Plant
from tests.helpers.garden import (
    FakeAssetStore,
    FakePlantRepository,
    FakeUnitOfWork,
    kitchen_fern_manifest,
    make_archive,
    make_repositories,
    make_user,
)


def test_import_commits_once_and_returns_summary() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))

    summary = import_backup(
        make_archive(kitchen_fern_manifest(), {"plant-1-image.jpg": b"x"}),
        mode="merge",
        user_id=user.id,
        unit_of_work_factory=lambda: uow,
        asset_store=FakeAssetStore(),
    )

    assert summary.mode is ImportMode.MERGE
    assert summary.plants.created == 1
    assert summary.images_restored == 1
    assert uow.committed == 1
    assert uow.rolled_back == 0


def test_structural_error_aborts_before_touching_storage() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))

    with pytest.raises(StructuralError):
        import_backup(
            b"garbage",
            mode=ImportMode.REPLACE,
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
        )

    assert uow.entered == 0


def test_unsupported_version_aborts_before_touching_storage() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))
    manifest = kitchen_fern_manifest()
    manifest["exportInfo"]["version"] = "3.0"

    with pytest.raises(StructuralError):
        import_backup(
            make_archive(manifest),
            mode=ImportMode.MERGE,
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
        )

    assert uow.entered == 0


def test_archive_size_limit_comes_from_config() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))

    with pytest.raises(StructuralError, match="limit"):
        import_backup(
            make_archive(kitchen_fern_manifest()),
            mode=ImportMode.MERGE,
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
            config=BackupConfig(max_archive_bytes=64),
        )


def test_expanded_size_limit_comes_from_config() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))

    with pytest.raises(StructuralError, match="expands to"):
        import_backup(
            make_archive(kitchen_fern_manifest(), {"plant-1-image.jpg": b"\0" * 4096}),
            mode=ImportMode.MERGE,
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
            config=BackupConfig(max_expanded_bytes=1024),
        )

    assert uow.entered == 0


def test_damaged_image_becomes_a_warning() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))
    image = b"fern-photo-bytes" * 4
    buffer = io.BytesIO()
    with ZipFile(buffer, mode="w") as archive:
        archive.writestr("backup.json", json.dumps(kitchen_fern_manifest()))
        archive.writestr("images/plant-1-image.jpg", image)
    data = buffer.getvalue()
    offset = data.index(image) + 3
    data = data[:offset] + b"X" + data[offset + 1 :]

    summary = import_backup(
        data,
        mode=ImportMode.MERGE,
        user_id=user.id,
        unit_of_work_factory=lambda: uow,
        asset_store=FakeAssetStore(),
    )

    assert summary.plants.created == 1
    assert summary.images_restored == 0
    assert any("plant-1-image.jpg" in warning for warning in summary.warnings)
    assert uow.committed == 1


def test_unknown_user_is_rejected() -> None:
    uow = FakeUnitOfWork(make_repositories())

    with pytest.raises(LookupError):
        import_backup(
            make_archive(kitchen_fern_manifest()),
            mode=ImportMode.MERGE,
            user_id=uuid4(),
            unit_of_work_factory=lambda: uow,
        )

    assert uow.committed == 0
    assert uow.rolled_back == 1


def test_unexpected_failure_rolls_back_without_commit() -> None:
    user = make_user()
    repos = make_repositories(users=[user])

    def explode(plant: Plant) -> bool:
        raise RuntimeError(f"disk on fire while storing {plant.name}")

    repos.plants = FakePlantRepository(fail_when=explode)
    uow = FakeUnitOfWork(repos)

    with pytest.raises(RuntimeError, match="disk on fire"):
        import_backup(
            make_archive(kitchen_fern_manifest()),
            mode=ImportMode.REPLACE,
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
        )

    assert uow.committed == 0
    assert uow.rolled_back == 1


def test_invalid_mode_is_rejected() -> None:
    user = make_user()
    uow = FakeUnitOfWork(make_repositories(users=[user]))

    with pytest.raises(ValueError, match="upsert"):
        import_backup(
            make_archive(kitchen_fern_manifest()),
            mode="upsert",
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
        )


def test_account_locks_serialise_the_same_account() -> None:
    locks = AccountLocks()
    user_id = uuid4()
    acquired = threading.Event()

    def contender() -> None:
        with locks.hold(user_id):
            acquired.set()

    with locks.hold(user_id):
        worker = threading.Thread(target=contender)
        worker.start()
        assert not acquired.wait(0.1)
    assert acquired.wait(2)
    worker.join(2)


def test_account_locks_do_not_block_other_accounts() -> None:
    locks = AccountLocks()
    acquired = threading.Event()

    def contender() -> None:
        with locks.hold(uuid4()):
            acquired.set()

    with locks.hold(uuid4()):
        worker = threading.Thread(target=contender)
        worker.start()
        assert acquired.wait(2)
    worker.join(2)


def test_account_locks_forget_idle_accounts() -> None:
    locks = AccountLocks()
    user_id = uuid4()

    with locks.hold(user_id):
        assert len(locks) == 1
    assert len(locks) == 0

    with pytest.raises(RuntimeError), locks.hold(user_id):
        raise RuntimeError("boom")
    assert len(locks) == 0
