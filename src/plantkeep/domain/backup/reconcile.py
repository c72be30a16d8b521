"""Reconciliation of a validated manifest into a user's live data.

One call is a single sequential pass in dependency order: locations, plants,
plant images, watering events, notification preferences. Archive-local ids
are translated through an :class:`IdentifierMap` scoped to the call, and a
dependent record whose parent was not restored is skipped instead of being
linked to the wrong plant.

Per-record :class:`ReferentialError` and :class:`PersistenceError` become
warnings in the returned :class:`ImportSummary`; anything else propagates so
that the surrounding unit of work can roll back.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from plantkeep.domain.model import (
    EntityType,
    ImportMode,
    Location,
    NotificationSettings,
    Plant,
    WateringEvent,
    utcnow,
)

from .assets import AssetRestorer
from .errors import PersistenceError, ReferentialError
from .identifiers import IdentifierMap
from .matching import matcher_for, normalize_text
from .summary import COUNTED_TYPES, ImportSummary

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from uuid import UUID

    from plantkeep.domain.ports.assets import AssetStore
    from plantkeep.domain.ports.unit_of_work import GardenRepositories

    from .schema import LocationRecord, PlantRecord, PreferencesRecord, WateringRecord
    from .validation import ValidatedManifest

log = getLogger(__name__)


@dataclass(slots=True)
class RestoredPlant:
    record: PlantRecord
    plant: Plant
    created: bool


@dataclass(slots=True)
class Reconciler:
    """Single-use driver for one reconciliation call."""

    repositories: GardenRepositories
    user_id: UUID
    mode: ImportMode
    asset_restorer: AssetRestorer | None = None

    identifiers: IdentifierMap = field(default_factory=IdentifierMap)
    summary: ImportSummary = field(init=False)
    _locations: list[Location] = field(default_factory=list[Location], init=False)

    def __post_init__(self) -> None:
        self.summary = ImportSummary(mode=self.mode)

    @property
    def merging(self) -> bool:
        return self.mode is ImportMode.MERGE

    def run(
        self,
        manifest: ValidatedManifest,
        assets: Mapping[str, bytes],
        *,
        unreadable_assets: Sequence[str] = (),
    ) -> ImportSummary:
        log.info(
            "Reconciling backup from %s (%s) for user %s in %s mode",
            manifest.export_info.username,
            manifest.export_info.exported_at.isoformat(),
            self.user_id,
            self.mode.value,
        )
        self._report_validation(manifest)
        for name in unreadable_assets:
            self.summary.warn(f"Image {name} in the archive is damaged and was not restored")
        if self.mode is ImportMode.REPLACE:
            self._clear_existing()

        self._restore_locations(manifest.locations)
        restored = self._restore_plants(manifest.plants)
        self._restore_images(restored, assets)
        self._restore_watering_history(manifest.watering_history)
        if manifest.preferences is not None:
            self._restore_preferences(manifest.preferences)

        log.info(
            "Finished reconciliation: plants=%s/%s/%s locations=%s/%s/%s watering=%s/%s/%s "
            "images=%s warnings=%s",
            self.summary.plants.created,
            self.summary.plants.updated,
            self.summary.plants.skipped,
            self.summary.locations.created,
            self.summary.locations.updated,
            self.summary.locations.skipped,
            self.summary.watering_history.created,
            self.summary.watering_history.updated,
            self.summary.watering_history.skipped,
            self.summary.images_restored,
            len(self.summary.warnings),
        )
        self._check_totals(manifest)
        return self.summary

    # Validation ---------------------------------------------------------------

    def _report_validation(self, manifest: ValidatedManifest) -> None:
        for error in manifest.errors:
            if error.entity_type in COUNTED_TYPES:
                self.summary.skipped(error.entity_type, error.describe())
            else:
                self.summary.warn(error.describe())
        for note in manifest.notes:
            self.summary.warn(note)

    def _check_totals(self, manifest: ValidatedManifest) -> None:
        # Every record in the manifest lands in exactly one outcome counter.
        for entity_type in COUNTED_TYPES:
            expected = manifest.seen.get(entity_type, 0)
            counted = self.summary.counts[entity_type].seen
            if counted != expected:
                log.error(
                    "Reconciliation accounted for %s of %s %s records",
                    counted,
                    expected,
                    entity_type.value,
                )

    # Replace ------------------------------------------------------------------

    def _clear_existing(self) -> None:
        # Children first so that no row is left pointing at a deleted parent.
        repos = self.repositories
        events = repos.watering_events.delete_all_for_user(self.user_id)
        plants = repos.plants.delete_all_for_user(self.user_id)
        locations = repos.locations.delete_all_for_user(self.user_id)
        log.info(
            "Replace mode removed %s watering events, %s plants, %s locations",
            events,
            plants,
            locations,
        )

    # Locations ----------------------------------------------------------------

    def _restore_locations(self, records: Sequence[LocationRecord]) -> None:
        self._locations = list(self.repositories.locations.list_for_user(self.user_id))
        matcher = matcher_for(EntityType.LOCATION)
        for record in records:
            try:
                # Location names are unique per user, so archive duplicates
                # collapse onto the location created for the first of them.
                existing = matcher.match(record, self._locations)
                if existing is None:
                    location = Location(
                        user_id=self.user_id,
                        name=record.name,
                        is_default=record.is_default,
                    )
                    self.repositories.locations.add(location)
                    self._locations.append(location)
                    self.summary.created(EntityType.LOCATION)
                else:
                    location = existing
                    self.summary.updated(EntityType.LOCATION)
                if record.id is not None:
                    self.identifiers.record(EntityType.LOCATION, record.id, location.id)
            except PersistenceError as exc:
                self.summary.skipped(
                    EntityType.LOCATION,
                    f"Failed to restore location '{record.name}': {exc}",
                )

    def _resolve_location(self, record: PlantRecord) -> UUID:
        by_id = self.identifiers.resolve(EntityType.LOCATION, record.location_id)
        if by_id is not None:
            return by_id
        wanted = normalize_text(record.location)
        for location in self._locations:
            if normalize_text(location.name) == wanted:
                return location.id
        raise ReferentialError(f"location '{record.location}' does not exist")

    # Plants -------------------------------------------------------------------

    def _restore_plants(self, records: Sequence[PlantRecord]) -> list[RestoredPlant]:
        # Each existing plant can absorb at most one archive record, so two
        # identical archived plants map onto two distinct live plants.
        unclaimed: list[Plant] = []
        if self.merging:
            unclaimed = list(self.repositories.plants.list_for_user(self.user_id))
        matcher = matcher_for(
            EntityType.PLANT,
            location_names={loc.id: loc.name for loc in self._locations},
        )
        restored: list[RestoredPlant] = []
        for record in records:
            try:
                location_id = self._resolve_location(record)
                existing = matcher.match(record, unclaimed) if self.merging else None
                if existing is None:
                    plant = self._create_plant(record, location_id)
                    self.summary.created(EntityType.PLANT)
                else:
                    unclaimed.remove(existing)
                    existing.apply_care_update(
                        watering_frequency=record.watering_frequency,
                        notes=record.notes,
                        last_watered=record.last_watered,
                    )
                    self.repositories.plants.update(existing)
                    plant = existing
                    self.summary.updated(EntityType.PLANT)
                self.identifiers.record(EntityType.PLANT, record.id, plant.id)
                restored.append(RestoredPlant(record=record, plant=plant, created=existing is None))
            except (ReferentialError, PersistenceError) as exc:
                self.summary.skipped(
                    EntityType.PLANT,
                    f"Failed to restore plant '{record.name}': {exc}",
                )
        return restored

    def _create_plant(self, record: PlantRecord, location_id: UUID) -> Plant:
        plant = Plant(
            user_id=self.user_id,
            name=record.name,
            species=record.species,
            location_id=location_id,
            watering_frequency=record.watering_frequency,
            last_watered=record.last_watered or utcnow(),
            notes=record.notes,
            image_url=None,
        )
        self.repositories.plants.add(plant)
        return plant

    # Images -------------------------------------------------------------------

    def _restore_images(
        self, restored: Sequence[RestoredPlant], assets: Mapping[str, bytes]
    ) -> None:
        for item in restored:
            if not item.record.declares_image:
                continue
            if not item.created and item.plant.image_url is not None:
                continue
            reference = None
            if self.asset_restorer is not None:
                reference = self.asset_restorer.restore(item.record.id, item.plant.id, assets)
            if reference is None:
                self.summary.warn(f"No image restored for plant '{item.record.name}'")
                continue
            item.plant.image_url = reference
            try:
                self.repositories.plants.update(item.plant)
            except PersistenceError as exc:
                item.plant.image_url = None
                self.summary.warn(f"Failed to attach image to plant '{item.record.name}': {exc}")
                continue
            self.summary.images_restored += 1

    # Watering history ---------------------------------------------------------

    def _restore_watering_history(self, records: Sequence[WateringRecord]) -> None:
        by_plant: defaultdict[UUID, list[WateringEvent]] = defaultdict(list)
        if self.merging:
            for event in self.repositories.watering_events.list_for_user(self.user_id):
                by_plant[event.plant_id].append(event)

        for record in records:
            try:
                plant_id = self.identifiers.resolve(EntityType.PLANT, record.plant_id)
                if plant_id is None:
                    message = f"plant ID {record.plant_id} was not restored"
                    raise ReferentialError(message)  # noqa: TRY301
                if self.merging:
                    matcher = matcher_for(EntityType.WATERING_EVENT, plant_id=plant_id)
                    if matcher.match(record, by_plant[plant_id]) is not None:
                        self.summary.updated(EntityType.WATERING_EVENT)
                        continue
                event = WateringEvent(
                    user_id=self.user_id,
                    plant_id=plant_id,
                    watered_at=record.watered_at,
                )
                self.repositories.watering_events.add(event)
                by_plant[plant_id].append(event)
                self.summary.created(EntityType.WATERING_EVENT)
            except (ReferentialError, PersistenceError) as exc:
                self.summary.skipped(
                    EntityType.WATERING_EVENT,
                    f"Skipping watering history entry for plant ID {record.plant_id}: {exc}",
                )

    # Preferences --------------------------------------------------------------

    def _restore_preferences(self, record: PreferencesRecord) -> None:
        repo = self.repositories.notification_settings
        try:
            settings = repo.get_for_user(self.user_id) or NotificationSettings(user_id=self.user_id)
            settings.apply_preferences(
                enabled=record.enabled,
                pushover_enabled=record.pushover_enabled,
                email_enabled=record.email_enabled,
                email_address=record.email_address,
            )
            repo.save(settings)
        except PersistenceError as exc:
            self.summary.warn(f"Failed to restore notification settings: {exc}")
            return
        self.summary.notification_settings_updated = True


def reconcile(
    manifest: ValidatedManifest,
    assets: Mapping[str, bytes],
    *,
    mode: ImportMode,
    user_id: UUID,
    repositories: GardenRepositories,
    asset_store: AssetStore | None = None,
    unreadable_assets: Sequence[str] = (),
) -> ImportSummary:
    """Reconcile ``manifest`` into ``user_id``'s data and return the summary.

    ``unreadable_assets`` names damaged image members; each becomes a warning.
    """

    restorer = None
    if asset_store is not None:
        restorer = AssetRestorer(store=asset_store, user_id=user_id)
    reconciler = Reconciler(
        repositories=repositories,
        user_id=user_id,
        mode=mode,
        asset_restorer=restorer,
    )
    return reconciler.run(manifest, assets, unreadable_assets=unreadable_assets)
