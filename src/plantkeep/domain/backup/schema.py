"""Pydantic models describing the backup manifest payload.

Field names follow the camelCase wire format; unknown fields are ignored.
Notification credentials are deliberately absent from
:class:`PreferencesRecord`, so they can never be read out of an archive.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plantkeep.domain.model import as_utc


def parse_timestamp(value: object) -> datetime:
    """Coerce an ISO-8601 string (``Z`` suffix and date-only allowed) into UTC."""

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        normalized = value.strip()
        if normalized.endswith(("Z", "z")):
            normalized = normalized[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError as exc:
            raise ValueError(f"invalid timestamp {value!r}") from exc
    else:
        raise ValueError(f"expected an ISO-8601 timestamp, got {type(value).__name__}")
    # Offsets near datetime.min/max overflow when shifted to UTC.
    try:
        return as_utc(parsed)
    except OverflowError as exc:
        raise ValueError(f"timestamp {value!r} is out of range") from exc


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _strip(value: object) -> object:
    if isinstance(value, str):
        return value.strip()
    return value


class BackupBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class ExportInfoRecord(BackupBaseModel):
    version: str = Field(min_length=1)
    exported_at: datetime = Field(alias="exportedAt")
    username: str = Field(min_length=1)

    _parse_exported_at = field_validator("exported_at", mode="before")(parse_timestamp)
    _strip_text = field_validator("version", "username", mode="before")(_strip)


class LocationRecord(BackupBaseModel):
    id: int | None = None
    name: str = Field(min_length=1)
    is_default: bool = Field(default=False, alias="isDefault")

    _strip_name = field_validator("name", mode="before")(_strip)


class PlantRecord(BackupBaseModel):
    id: int
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    location_id: int | None = Field(default=None, alias="locationId")
    watering_frequency: int = Field(ge=1, alias="wateringFrequency")
    last_watered: datetime | None = Field(default=None, alias="lastWatered")
    species: str | None = None
    notes: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")

    _strip_text = field_validator("name", "location", mode="before")(_strip)
    _normalize_optional = field_validator("species", "notes", "image_url", mode="before")(
        _blank_to_none
    )

    @field_validator("last_watered", mode="before")
    @classmethod
    def _parse_last_watered(cls, value: object) -> datetime | None:
        if value is None:
            return None
        return parse_timestamp(value)

    @property
    def declares_image(self) -> bool:
        return self.image_url is not None


class WateringRecord(BackupBaseModel):
    id: int | None = None
    plant_id: int = Field(alias="plantId")
    watered_at: datetime = Field(alias="wateredAt")

    _parse_watered_at = field_validator("watered_at", mode="before")(parse_timestamp)


class PreferencesRecord(BackupBaseModel):
    enabled: bool
    pushover_enabled: bool = Field(default=False, alias="pushoverEnabled")
    email_enabled: bool = Field(default=False, alias="emailEnabled")
    email_address: str | None = Field(default=None, alias="emailAddress")

    @field_validator("pushover_enabled", "email_enabled", mode="before")
    @classmethod
    def _none_is_false(cls, value: object) -> object:
        return False if value is None else value

    _normalize_email = field_validator("email_address", mode="before")(_blank_to_none)
