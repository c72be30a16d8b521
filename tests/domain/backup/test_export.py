from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from plantkeep.domain.backup import export_backup, extract_archive, import_backup
from plantkeep.domain.model import NotificationSettings, WateringEvent
from tests.helpers.garden import (
    FakeAssetStore,
    FakeUnitOfWork,
    make_location,
    make_plant,
    make_repositories,
    make_user,
)

if TYPE_CHECKING:
    from plantkeep.domain.model import User


def _populated() -> tuple[FakeUnitOfWork, FakeAssetStore, User]:
    user = make_user()
    kitchen = make_location(user, "Kitchen")
    hallway = make_location(user, "Hallway", offset=1)
    store = FakeAssetStore()
    fern = make_plant(user, kitchen, "Fern", species="Nephrolepis")
    fern.image_url = store.save(user.id, f"{fern.id}.png", b"fern-photo")
    ivy = make_plant(user, hallway, "Ivy", offset=1)
    events = [
        WateringEvent(
            user_id=user.id, plant_id=fern.id, watered_at=datetime(2024, 3, 1, tzinfo=UTC)
        ),
        WateringEvent(
            user_id=user.id, plant_id=ivy.id, watered_at=datetime(2024, 3, 2, tzinfo=UTC)
        ),
    ]
    settings = NotificationSettings(
        user_id=user.id,
        email_enabled=True,
        email_address="alice@example.com",
        sendgrid_api_key="secret-key",
        pushover_app_token="secret-token",
    )
    repos = make_repositories(
        users=[user],
        locations=[kitchen, hallway],
        plants=[fern, ivy],
        watering_events=events,
        settings=[settings],
    )
    return FakeUnitOfWork(repos), store, user


def test_export_writes_manifest_with_archive_ids() -> None:
    uow, store, user = _populated()

    data = export_backup(user_id=user.id, unit_of_work_factory=lambda: uow, asset_store=store)

    extracted = extract_archive(data)
    manifest = json.loads(extracted.manifest)
    assert manifest["exportInfo"]["username"] == "alice"
    assert manifest["exportInfo"]["version"] == "1.0"
    assert [loc["id"] for loc in manifest["locations"]] == [1, 2]
    fern, ivy = manifest["plants"]
    assert fern["locationId"] == 1
    assert fern["location"] == "Kitchen"
    assert ivy["locationId"] == 2
    assert [(event["id"], event["plantId"]) for event in manifest["wateringHistory"]] == [
        (1, 1),
        (2, 2),
    ]
    assert extracted.assets == {"plant-1-image.png": b"fern-photo"}


def test_export_never_contains_credentials() -> None:
    uow, store, user = _populated()

    data = export_backup(user_id=user.id, unit_of_work_factory=lambda: uow, asset_store=store)

    manifest = extract_archive(data).manifest.decode()
    assert "secret" not in manifest
    assert json.loads(manifest)["notificationSettings"]["emailAddress"] == "alice@example.com"


def test_export_then_merge_import_is_idempotent() -> None:
    uow, store, user = _populated()
    data = export_backup(user_id=user.id, unit_of_work_factory=lambda: uow, asset_store=store)

    for _ in range(2):
        summary = import_backup(
            data,
            mode="merge",
            user_id=user.id,
            unit_of_work_factory=lambda: uow,
            asset_store=store,
        )
        assert summary.locations.created == 0
        assert summary.plants.created == 0
        assert summary.watering_history.created == 0
        assert summary.images_restored == 0
        assert summary.plants.updated == 2
        assert summary.watering_history.updated == 2
        assert summary.warnings == []


def test_export_rejects_unknown_user() -> None:
    uow, _, _ = _populated()

    with pytest.raises(LookupError):
        export_backup(user_id=uuid4(), unit_of_work_factory=lambda: uow)
