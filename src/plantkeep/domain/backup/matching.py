"""Merge-mode matchers deciding whether an archive record already exists.

Each matcher is a pure, total function over the incoming record and the
user's existing entities. Comparisons are case-insensitive and ignore
surrounding whitespace. When several existing entities match, the first one
in the supplied order wins; callers pass candidates ordered by creation time
and then id, which makes the choice deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal, overload
from uuid import UUID

from plantkeep.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from plantkeep.domain.model import Location, Plant, WateringEvent

    from .schema import LocationRecord, PlantRecord, WateringRecord


def normalize_text(value: str | None) -> str | None:
    """Casefold and trim ``value``; blank strings become ``None``."""

    if value is None:
        return None
    normalized = " ".join(value.split()).casefold()
    return normalized or None


@dataclass(frozen=True, slots=True)
class LocationMatcher:
    """Locations match on their name."""

    entity_type: ClassVar[EntityType] = EntityType.LOCATION

    def match(self, incoming: LocationRecord, existing: Iterable[Location]) -> Location | None:
        wanted = normalize_text(incoming.name)
        if wanted is None:
            return None
        for candidate in existing:
            if normalize_text(candidate.name) == wanted:
                return candidate
        return None


@dataclass(frozen=True, slots=True)
class PlantMatcher:
    """Plants match on name, species and location name together.

    ``location_names`` maps live location ids to their names. Name and
    location must be present on both sides; species is optional and two
    missing species are considered equal.
    """

    entity_type: ClassVar[EntityType] = EntityType.PLANT

    location_names: Mapping[UUID, str] = field(default_factory=dict[UUID, str])

    def match(self, incoming: PlantRecord, existing: Iterable[Plant]) -> Plant | None:
        name = normalize_text(incoming.name)
        location = normalize_text(incoming.location)
        if name is None or location is None:
            return None
        species = normalize_text(incoming.species)
        for candidate in existing:
            if normalize_text(candidate.name) != name:
                continue
            if normalize_text(candidate.species) != species:
                continue
            if normalize_text(self.location_names.get(candidate.location_id)) != location:
                continue
            return candidate
        return None


@dataclass(frozen=True, slots=True)
class WateringEventMatcher:
    """Watering events match when they belong to the same live plant at the same instant."""

    entity_type: ClassVar[EntityType] = EntityType.WATERING_EVENT

    plant_id: UUID

    def match(
        self, incoming: WateringRecord, existing: Iterable[WateringEvent]
    ) -> WateringEvent | None:
        for candidate in existing:
            if candidate.plant_id == self.plant_id and candidate.watered_at == incoming.watered_at:
                return candidate
        return None


type Matcher = LocationMatcher | PlantMatcher | WateringEventMatcher


@overload
def matcher_for(entity_type: Literal[EntityType.LOCATION]) -> LocationMatcher: ...


@overload
def matcher_for(
    entity_type: Literal[EntityType.PLANT], *, location_names: Mapping[UUID, str]
) -> PlantMatcher: ...


@overload
def matcher_for(
    entity_type: Literal[EntityType.WATERING_EVENT], *, plant_id: UUID
) -> WateringEventMatcher: ...


@overload
def matcher_for(
    entity_type: EntityType,
    *,
    location_names: Mapping[UUID, str] | None = None,
    plant_id: UUID | None = None,
) -> Matcher: ...


def matcher_for(
    entity_type: EntityType,
    *,
    location_names: Mapping[UUID, str] | None = None,
    plant_id: UUID | None = None,
) -> Matcher:
    """Return the matcher variant for ``entity_type``.

    Plant matching needs the live location names; watering matching is scoped
    to one live plant.
    """

    if entity_type is EntityType.LOCATION:
        return LocationMatcher()
    if entity_type is EntityType.PLANT:
        return PlantMatcher(location_names=dict(location_names or {}))
    if entity_type is EntityType.WATERING_EVENT and plant_id is not None:
        return WateringEventMatcher(plant_id=plant_id)
    raise ValueError(f"No merge matcher for entity type {entity_type.value}")
