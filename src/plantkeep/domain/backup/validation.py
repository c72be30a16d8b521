"""Manifest validation: strict export metadata, lenient per-record checks."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, cast

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from plantkeep.config.backup import SCHEMA_VERSION
from plantkeep.domain.model import EntityType

from .errors import StructuralError, ValidationError
from .schema import (
    ExportInfoRecord,
    LocationRecord,
    PlantRecord,
    PreferencesRecord,
    WateringRecord,
    parse_timestamp,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

EXPORT_INFO_KEY: Final[str] = "exportInfo"
PREFERENCES_KEY: Final[str] = "notificationSettings"

_COLLECTIONS: Final[tuple[tuple[str, EntityType, type[BaseModel]], ...]] = (
    ("locations", EntityType.LOCATION, LocationRecord),
    ("plants", EntityType.PLANT, PlantRecord),
    ("wateringHistory", EntityType.WATERING_EVENT, WateringRecord),
)


@dataclass(slots=True)
class ValidatedManifest:
    """Typed projection of a manifest plus everything that was left out."""

    export_info: ExportInfoRecord
    locations: list[LocationRecord] = field(default_factory=list[LocationRecord])
    plants: list[PlantRecord] = field(default_factory=list[PlantRecord])
    watering_history: list[WateringRecord] = field(default_factory=list[WateringRecord])
    preferences: PreferencesRecord | None = None
    errors: list[ValidationError] = field(default_factory=list[ValidationError])
    notes: list[str] = field(default_factory=list[str])
    seen: dict[EntityType, int] = field(default_factory=dict[EntityType, int])

    def errors_for(self, entity_type: EntityType) -> list[ValidationError]:
        return [error for error in self.errors if error.entity_type is entity_type]


def validate_manifest(
    manifest: bytes | str | Mapping[str, object],
    *,
    schema_version: str = SCHEMA_VERSION,
) -> ValidatedManifest:
    """Parse ``manifest`` into typed records.

    Problems with the document as a whole raise :class:`StructuralError`.
    Problems with individual records are collected in ``errors`` and the
    offending records are left out of the typed collections.
    """

    document = _load_document(manifest)
    export_info = _validate_export_info(document.get(EXPORT_INFO_KEY), schema_version)
    result = ValidatedManifest(export_info=export_info)

    for key, entity_type, model in _COLLECTIONS:
        raw_records = _collection(document, key)
        result.seen[entity_type] = len(raw_records)
        records = _validate_records(raw_records, entity_type, model, result)
        if entity_type is EntityType.LOCATION:
            result.locations = cast(list[LocationRecord], records)
        elif entity_type is EntityType.PLANT:
            result.plants = cast(list[PlantRecord], records)
        else:
            result.watering_history = cast(list[WateringRecord], records)

    raw_preferences = document.get(PREFERENCES_KEY)
    if raw_preferences is not None:
        result.seen[EntityType.NOTIFICATION_SETTINGS] = 1
        preferences = _validate_one(
            raw_preferences,
            EntityType.NOTIFICATION_SETTINGS,
            0,
            PreferencesRecord,
            result,
        )
        result.preferences = cast(PreferencesRecord | None, preferences)

    return result


def _load_document(manifest: bytes | str | Mapping[str, object]) -> Mapping[str, object]:
    if isinstance(manifest, Mapping):
        document: object = manifest
    else:
        try:
            document = json.loads(manifest)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StructuralError(f"Manifest is not valid JSON: {exc}") from exc
    if not isinstance(document, Mapping):
        raise StructuralError("Manifest must be a JSON object")
    return cast(Mapping[str, object], document)


def _validate_export_info(raw: object, schema_version: str) -> ExportInfoRecord:
    if raw is None:
        raise StructuralError(f"Manifest is missing '{EXPORT_INFO_KEY}'")
    try:
        export_info = ExportInfoRecord.model_validate(raw)
    except PydanticValidationError as exc:
        raise StructuralError(
            f"Invalid export metadata: {'; '.join(_format_errors(exc))}"
        ) from exc
    if _major(export_info.version) != _major(schema_version):
        raise StructuralError(
            f"Unsupported backup format version {export_info.version!r} "
            f"(expected {schema_version})"
        )
    return export_info


def _collection(document: Mapping[str, object], key: str) -> list[object]:
    raw = document.get(key)
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise StructuralError(f"Manifest field '{key}' must be an array")
    return cast(list[object], raw)


def _validate_records(
    raw_records: Sequence[object],
    entity_type: EntityType,
    model: type[BaseModel],
    result: ValidatedManifest,
) -> list[BaseModel]:
    records: list[BaseModel] = []
    seen_ids: set[int] = set()
    for index, raw in enumerate(raw_records):
        record = _validate_one(raw, entity_type, index, model, result)
        if record is None:
            continue
        record_id = cast(int | None, getattr(record, "id", None))
        if record_id is not None:
            if record_id in seen_ids:
                result.errors.append(
                    ValidationError(
                        entity_type,
                        index,
                        [f"duplicate archive id {record_id}"],
                        label=_label(raw),
                    )
                )
                continue
            seen_ids.add(record_id)
        records.append(record)
    return records


def _validate_one(
    raw: object,
    entity_type: EntityType,
    index: int,
    model: type[BaseModel],
    result: ValidatedManifest,
) -> BaseModel | None:
    if not isinstance(raw, Mapping):
        result.errors.append(ValidationError(entity_type, index, ["record is not an object"]))
        return None
    payload = cast(Mapping[str, Any], raw)
    if model is PlantRecord:
        payload = _default_unreadable_last_watered(payload, result)
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        result.errors.append(
            ValidationError(entity_type, index, _format_errors(exc), label=_label(payload))
        )
        return None


def _default_unreadable_last_watered(
    payload: Mapping[str, Any], result: ValidatedManifest
) -> Mapping[str, Any]:
    # An unknown last-watered date falls back to the import time.
    value = payload.get("lastWatered")
    if value is None:
        return payload
    try:
        parse_timestamp(value)
    except ValueError:
        result.notes.append(
            f"Plant '{_label(payload) or '?'}' has an unreadable lastWatered value "
            f"{value!r}; using the import time instead"
        )
        return {**payload, "lastWatered": None}
    return payload


def _format_errors(exc: PydanticValidationError) -> list[str]:
    messages: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "record"
        messages.append(f"{location}: {error['msg']}")
    return messages


def _label(raw: object) -> str | None:
    if isinstance(raw, Mapping):
        name = cast(Mapping[str, object], raw).get("name")
        if isinstance(name, str) and name.strip():
            return name.strip()
    return None


def _major(version: str) -> str:
    return version.split(".", 1)[0].strip()
