from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from plantkeep.adapters.assets import FileSystemAssetStore
from plantkeep.adapters.sqlalchemy.repositories import SqlAlchemyWateringEventRepository
from plantkeep.app import create_user
from plantkeep.domain.backup import export_backup, import_backup
from plantkeep.domain.model import ImportMode, NotificationSettings
from tests.helpers.garden import kitchen_fern_manifest, make_archive, make_manifest, plant_record

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path
    from uuid import UUID

    from plantkeep.adapters.sqlalchemy.unit_of_work import SqlAlchemyGardenUnitOfWork
    from plantkeep.domain.backup import ImportSummary

    UowFactory = Callable[[], SqlAlchemyGardenUnitOfWork]


def _import(
    data: bytes,
    user_id: UUID,
    uow_factory: UowFactory,
    store: FileSystemAssetStore,
    mode: ImportMode = ImportMode.MERGE,
) -> ImportSummary:
    return import_backup(
        data,
        mode=mode,
        user_id=user_id,
        unit_of_work_factory=uow_factory,
        asset_store=store,
    )


def test_kitchen_fern_import_persists_remapped_rows(
    sqlite_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    store = FileSystemAssetStore(tmp_path)
    user = create_user(username="alice", unit_of_work_factory=sqlite_unit_of_work)
    data = make_archive(kitchen_fern_manifest(), {"plant-1-image.jpg": b"fern"})

    summary = _import(data, user.id, sqlite_unit_of_work, store)

    assert summary.to_payload()["warnings"] == []
    with sqlite_unit_of_work() as uow:
        repos = uow.repositories
        (kitchen,) = repos.locations.list_for_user(user.id)
        (fern,) = repos.plants.list_for_user(user.id)
        events = repos.watering_events.list_for_user(user.id)
        assert fern.location_id == kitchen.id
        assert {event.plant_id for event in events} == {fern.id}
        assert len(events) == 2
        assert fern.image_url == f"{user.id}/{fern.id}.jpg"
        assert store.load(fern.image_url) == b"fern"
        settings = repos.notification_settings.get_for_user(user.id)
        assert settings is not None
        assert settings.email_address == "alice@example.com"


def test_export_reimport_round_trip_is_idempotent(
    sqlite_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    store = FileSystemAssetStore(tmp_path)
    user = create_user(username="alice", unit_of_work_factory=sqlite_unit_of_work)
    _import(
        make_archive(kitchen_fern_manifest(), {"plant-1-image.jpg": b"fern"}),
        user.id,
        sqlite_unit_of_work,
        store,
    )

    exported = export_backup(
        user_id=user.id, unit_of_work_factory=sqlite_unit_of_work, asset_store=store
    )
    summary = _import(exported, user.id, sqlite_unit_of_work, store)

    payload = summary.to_payload()
    assert payload["plantsCreated"] == 0
    assert payload["locationsCreated"] == 0
    assert payload["wateringHistoryCreated"] == 0
    assert payload["imagesRestored"] == 0
    assert payload["plantsUpdated"] == 1
    assert payload["warnings"] == []
    with sqlite_unit_of_work() as uow:
        assert len(uow.repositories.plants.list_for_user(user.id)) == 1
        assert len(uow.repositories.watering_events.list_for_user(user.id)) == 2


def test_replace_leaves_only_archived_rows(
    sqlite_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    store = FileSystemAssetStore(tmp_path)
    user = create_user(username="alice", unit_of_work_factory=sqlite_unit_of_work)
    stale = make_manifest(
        locations=[{"id": 1, "name": "Hallway"}],
        plants=[plant_record(1, "Ivy", location="Hallway")],
        watering_history=[{"plantId": 1, "wateredAt": "2024-02-01T00:00:00Z"}],
    )
    _import(make_archive(stale), user.id, sqlite_unit_of_work, store)

    summary = _import(
        make_archive(kitchen_fern_manifest()),
        user.id,
        sqlite_unit_of_work,
        store,
        mode=ImportMode.REPLACE,
    )

    assert summary.plants.created == 1
    with sqlite_unit_of_work() as uow:
        repos = uow.repositories
        assert [loc.name for loc in repos.locations.list_for_user(user.id)] == ["Kitchen"]
        plants = repos.plants.list_for_user(user.id)
        assert [plant.name for plant in plants] == ["Fern"]
        events = repos.watering_events.list_for_user(user.id)
        assert {event.plant_id for event in events} == {plants[0].id}


def test_replace_failure_rolls_back_the_deletion(
    sqlite_unit_of_work: UowFactory, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    store = FileSystemAssetStore(tmp_path)
    user = create_user(username="alice", unit_of_work_factory=sqlite_unit_of_work)
    _import(make_archive(kitchen_fern_manifest()), user.id, sqlite_unit_of_work, store)

    def broken_add(*_: object) -> None:
        raise RuntimeError("connection lost")

    monkeypatch.setattr(SqlAlchemyWateringEventRepository, "add", broken_add)

    with pytest.raises(RuntimeError, match="connection lost"):
        _import(
            make_archive(kitchen_fern_manifest()),
            user.id,
            sqlite_unit_of_work,
            store,
            mode=ImportMode.REPLACE,
        )

    with sqlite_unit_of_work() as uow:
        assert [p.name for p in uow.repositories.plants.list_for_user(user.id)] == ["Fern"]
        assert len(uow.repositories.watering_events.list_for_user(user.id)) == 2


def test_import_keeps_local_credentials(
    sqlite_unit_of_work: UowFactory, tmp_path: Path
) -> None:
    store = FileSystemAssetStore(tmp_path)
    user = create_user(username="alice", unit_of_work_factory=sqlite_unit_of_work)
    with sqlite_unit_of_work() as uow:
        uow.repositories.notification_settings.save(
            NotificationSettings(user_id=user.id, pushover_app_token="local-token")
        )
        uow.commit()
    manifest = kitchen_fern_manifest()
    manifest["notificationSettings"]["pushoverAppToken"] = "archived-token"

    _import(make_archive(manifest), user.id, sqlite_unit_of_work, store)

    with sqlite_unit_of_work() as uow:
        settings = uow.repositories.notification_settings.get_for_user(user.id)
        assert settings is not None
        assert settings.pushover_app_token == "local-token"
        assert settings.pushover_enabled is True
