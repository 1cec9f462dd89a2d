"""Application services that move provider data into the canonical ship catalog."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import FleetSyncError, ProviderError, ValidationError
from fleetsync.domain.model import (
    NEW_SHIPS_CATEGORY,
    NewsItem,
    PreferredSource,
    ReconcileAction,
    SourcePreference,
)
from fleetsync.domain.reconciliation import ReconciliationEngine

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import timedelta

    from fleetsync.domain.caching import CacheManager
    from fleetsync.domain.clock import Clock
    from fleetsync.domain.model import Provider, ShipPayload
    from fleetsync.domain.ports import ShipSource, UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class SyncShipsResult:
    """Outcome of a ship sync run; ``upserts`` counts created plus updated records."""

    total: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: int = 0

    @property
    def upserts(self) -> int:
        return self.created + self.updated


def sync_ships(
    *,
    sources: Sequence[ShipSource],
    unit_of_work_factory: UnitOfWorkFactory,
    engine: ReconciliationEngine | None = None,
    force: bool = False,
    clock: Clock = utcnow,
) -> SyncShipsResult:
    """Fetch every source, then reconcile and persist each ship on its own.

    Sources are queried in order; the slugs discovered so far are handed to the next
    source so per-entity providers only look up ships we already know about. A
    source that fails entirely is counted and skipped unless every source failed.
    """

    engine = engine or ReconciliationEngine()
    result = SyncShipsResult()
    grouped: dict[str, dict[Provider, ShipPayload]] = defaultdict(dict)
    failures: list[ProviderError] = []

    for source in sources:
        known = list(grouped) if grouped else None
        try:
            fetched = source(slugs=known)
        except ProviderError as exc:
            log.error(f"Ship source {source.provider} failed: {exc}")
            failures.append(exc)
            result.errors += 1
            continue
        result.errors += fetched.errors
        for payload in fetched.payloads:
            grouped[payload.slug][payload.provider] = payload

    if failures and len(failures) == len(sources):
        raise failures[-1]

    result.total = len(grouped)
    for slug, fresh in grouped.items():
        try:
            action = _reconcile_one(
                slug,
                fresh,
                engine=engine,
                unit_of_work_factory=unit_of_work_factory,
                force=force,
                clock=clock,
            )
        except (FleetSyncError, ValueError) as exc:
            log.error(f"Failed to reconcile {slug}: {exc}")
            result.errors += 1
            continue
        if action is ReconcileAction.CREATE:
            result.created += 1
        elif action is ReconcileAction.UPDATE:
            result.updated += 1
        else:
            result.skipped += 1

    log.info(
        "Ship sync finished: total=%s, created=%s, updated=%s, skipped=%s, errors=%s",
        result.total,
        result.created,
        result.updated,
        result.skipped,
        result.errors,
    )
    return result


def _reconcile_one(
    slug: str,
    fresh: dict[Provider, ShipPayload],
    *,
    engine: ReconciliationEngine,
    unit_of_work_factory: UnitOfWorkFactory,
    force: bool,
    clock: Clock,
) -> ReconcileAction:
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        current = repositories.ships.get(slug)
        preference = repositories.preferences.get(slug)
        decision = engine.reconcile(slug, fresh, current, preference=preference, force=force)
        ship = engine.apply(decision, current, fresh, now=clock())
        if current is None:
            repositories.ships.add(ship)
        uow.commit()
    if decision.should_write:
        log.debug(f"{decision.action} {slug}: {decision.changes}")
    return decision.action


@dataclass(slots=True)
class OverrideResult:
    slug: str
    preferred_source: PreferredSource
    cache_entries_cleared: int = 0
    applied: bool = False
    action: ReconcileAction = ReconcileAction.SKIP


def apply_source_override(
    *,
    slug: str,
    preferred_source: PreferredSource,
    unit_of_work_factory: UnitOfWorkFactory,
    engine: ReconciliationEngine | None = None,
    reason: str | None = None,
    clear_cache: bool = False,
    set_by: str | None = None,
    cache: CacheManager | None = None,
    clock: Clock = utcnow,
) -> OverrideResult:
    """Record an administrator's source choice and re-reconcile from stored payloads."""

    if not slug.strip():
        raise ValidationError("entity_key must not be empty")

    engine = engine or ReconciliationEngine()
    now = clock()
    result = OverrideResult(slug=slug, preferred_source=preferred_source)

    pinned = preferred_source.provider
    if clear_cache and cache is not None and pinned is not None:
        result.cache_entries_cleared = cache.invalidate(pinned)

    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        preference = repositories.preferences.get(slug)
        if preference is None:
            preference = SourcePreference(slug=slug)
            repositories.preferences.add(preference)
        preference.preferred_source = preferred_source
        preference.reason = reason
        preference.clear_cache = clear_cache
        preference.set_by = set_by
        preference.set_at = now

        current = repositories.ships.get(slug)
        if current is not None:
            decision = engine.reconcile(slug, {}, current, preference=preference)
            engine.apply(decision, current, {}, now=now)
            result.applied = decision.should_write
            result.action = decision.action
        uow.commit()

    log.info(
        f"Source override for {slug}: {preferred_source} "
        f"(applied={result.applied}, cache_cleared={result.cache_entries_cleared})"
    )
    return result


@dataclass(slots=True)
class AnnouncementResult:
    candidates: int = 0
    created: int = 0


def announce_flight_ready(
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    lookback: timedelta,
    clock: Clock = utcnow,
) -> AnnouncementResult:
    """Publish one "New Ships" news item per ship that recently became flight ready."""

    now = clock()
    result = AnnouncementResult()
    with unit_of_work_factory() as uow:
        repositories = uow.repositories
        ships = repositories.ships.flight_ready_since(now - lookback)
        result.candidates = len(ships)
        for ship in ships:
            stamp = ship.flight_ready_since or ship.updated_at
            dedupe_key = f"ship_flight_ready_{ship.slug}_{stamp.isoformat()}"
            if repositories.news.has_dedupe_key(dedupe_key):
                continue
            manufacturer = ship.manufacturer or "Unknown manufacturer"
            repositories.news.add(
                NewsItem(
                    title=f"Flight Ready: {ship.name}",
                    category=NEW_SHIPS_CATEGORY,
                    excerpt=f"The {manufacturer} {ship.name} is now flight ready.",
                    content=(
                        f"The {ship.name} by {manufacturer} has reached flight ready status"
                        f" ({ship.production_status or 'flight ready'})."
                    ),
                    image_url=ship.image_url,
                    source_url=ship.provenance.source_url if ship.provenance else None,
                    published_at=stamp,
                    dedupe_key=dedupe_key,
                )
            )
            result.created += 1
        uow.commit()
    return result
