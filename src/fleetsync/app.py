"""Application orchestration entry points.

One function per job. Each wires the configured adapters into the domain services,
runs the body through :class:`~fleetsync.domain.jobs.JobRunner` (lock, ledger,
audit) and returns the JSON-ready response the HTTP and CLI surfaces hand out.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fleetsync.adapters.fleetyards import (
    FleetYardsCatalog,
    FleetYardsProbe,
    FleetYardsRumorSource,
    FleetYardsShipSource,
)
from fleetsync.adapters.rsi import RsiMonthlyReportSource
from fleetsync.adapters.scunpacked import ScUnpackedSource
from fleetsync.adapters.sqlalchemy import SqlAlchemyFleetUnitOfWork, is_started, startup
from fleetsync.adapters.wiki import WikiShipSource
from fleetsync.config.sync import (
    JOB_CACHE_REFRESH,
    JOB_CLEANUP,
    JOB_FLIGHT_READY_NEWS,
    JOB_NEWS_CLEANUP,
    JOB_RUMOR_SYNC,
    JOB_SHIP_OVERRIDE,
    JOB_SHIPS_SYNC,
    SyncConfig,
    get_sync_config,
)
from fleetsync.domain.caching import CacheManager
from fleetsync.domain.clock import utcnow
from fleetsync.domain.data_integration import (
    announce_flight_ready,
    apply_source_override,
    sync_ships,
)
from fleetsync.domain.errors import ValidationError
from fleetsync.domain.jobs import JobOutcome, JobRunner
from fleetsync.domain.model import PreferredSource
from fleetsync.domain.reconciliation import ReconciliationEngine
from fleetsync.domain.retention import RetentionManager
from fleetsync.domain.rumors import confirm_rumor, sync_rumors

if TYPE_CHECKING:
    from collections.abc import Sequence

    from fleetsync.domain.clock import Clock
    from fleetsync.domain.ports import (
        CatalogSource,
        ModelProbe,
        RumorSource,
        ShipSource,
        UnitOfWorkFactory,
    )

log = getLogger(__name__)

JOB_SLUG_PROBE = "slug-probe"
JOB_RUMOR_CONFIRM = "rumor-confirm"


@dataclass(slots=True)
class _Wiring:
    unit_of_work_factory: UnitOfWorkFactory
    config: SyncConfig
    clock: Clock
    runner: JobRunner = field(init=False)

    def __post_init__(self) -> None:
        self.runner = JobRunner(
            self.unit_of_work_factory, lock_config=self.config.locks, clock=self.clock
        )

    def cache_manager(self) -> CacheManager:
        return CacheManager(self.unit_of_work_factory, self.config.cache, clock=self.clock)


def _wire(
    unit_of_work_factory: UnitOfWorkFactory | None,
    config: SyncConfig | None,
    clock: Clock,
) -> _Wiring:
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyFleetUnitOfWork
    return _Wiring(
        unit_of_work_factory=unit_of_work_factory,
        config=config or get_sync_config(),
        clock=clock,
    )


def sync_ships_job(
    *,
    force: bool = False,
    auto_sync: bool = False,
    sources: Sequence[ShipSource] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Fetch the wiki and FleetYards catalogs and reconcile every ship."""

    wiring = _wire(unit_of_work_factory, config, clock)
    effective_sources = sources
    if effective_sources is None:
        effective_sources = (
            WikiShipSource(),
            FleetYardsShipSource(
                cache=wiring.cache_manager(), cache_settings=wiring.config.cache
            ),
        )
    engine = ReconciliationEngine(precedence=wiring.config.precedence)
    log.info(f"Starting ship sync: force={force}, auto_sync={auto_sync}")

    def body() -> JobOutcome:
        result = sync_ships(
            sources=effective_sources,
            unit_of_work_factory=wiring.unit_of_work_factory,
            engine=engine,
            force=force,
            clock=wiring.clock,
        )
        return JobOutcome(
            items_synced=result.upserts,
            counters={
                "total": result.total,
                "created": result.created,
                "updated": result.updated,
                "skipped": result.skipped,
                "errors": result.errors,
                "force": force,
            },
        )

    report = wiring.runner.run(
        JOB_SHIPS_SYNC,
        body,
        audit_action="auto_sync_ships" if auto_sync else "manual_sync_ships",
        actor="cron" if auto_sync else "admin",
    )
    counters = report.outcome.counters
    return {
        "success": True,
        "upserts": report.outcome.items_synced,
        "errors": counters["errors"],
        "total": counters["total"],
        "created": counters["created"],
        "updated": counters["updated"],
        "skipped": counters["skipped"],
        "items_synced": report.outcome.items_synced,
        "duration_ms": report.duration_ms,
    }


def refresh_provider_cache(
    *,
    catalog: CatalogSource | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Replace the provider's catalog snapshot; nothing is written if any page fails."""

    wiring = _wire(unit_of_work_factory, config, clock)
    source = catalog or FleetYardsCatalog()
    cache = wiring.cache_manager()

    def body() -> JobOutcome:
        refreshed = cache.refresh(source)
        return JobOutcome(
            items_synced=refreshed.items,
            counters={
                "provider": refreshed.provider.value,
                "pages": refreshed.pages,
                "truncated": refreshed.truncated,
                "expires_at": refreshed.expires_at.isoformat(),
            },
        )

    report = wiring.runner.run(JOB_CACHE_REFRESH, body)
    return {
        "success": True,
        "models_count": report.outcome.items_synced,
        "items_synced": report.outcome.items_synced,
        **report.outcome.counters,
    }


def sync_rumors_job(
    *,
    sources: Sequence[RumorSource] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Mine monthly reports, the FleetYards roadmap and the datamine for rumors."""

    wiring = _wire(unit_of_work_factory, config, clock)
    rumor_config = wiring.config.rumors
    effective_sources = sources
    if effective_sources is None:
        effective_sources = (
            RsiMonthlyReportSource(rumor_config=rumor_config, clock=clock),
            FleetYardsRumorSource(clock=clock),
            ScUnpackedSource(clock=clock),
        )

    def body() -> JobOutcome:
        result = sync_rumors(
            sources=effective_sources,
            unit_of_work_factory=wiring.unit_of_work_factory,
            config=rumor_config,
            clock=wiring.clock,
        )
        return JobOutcome(
            items_synced=result.inserted + result.updated,
            counters={
                "total_collected": result.total_collected,
                "after_filtering": result.after_filtering,
                "inserted": result.inserted,
                "updated": result.updated,
                "errors": result.errors,
                "failed_sources": result.failed_sources,
            },
        )

    report = wiring.runner.run(JOB_RUMOR_SYNC, body)
    counters = report.outcome.counters
    return {
        "success": True,
        "duration_ms": report.duration_ms,
        "items_synced": report.outcome.items_synced,
        "inserted": counters["inserted"],
        "updated": counters["updated"],
        "errors": counters["errors"],
        "failed_sources": counters["failed_sources"],
        "stats": {
            "total_collected": counters["total_collected"],
            "after_filtering": counters["after_filtering"],
            "inserted": counters["inserted"],
            "updated": counters["updated"],
        },
    }


def run_cleanup(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Prune raw payloads, stale locks, stuck jobs, old history and expired cache."""

    wiring = _wire(unit_of_work_factory, config, clock)
    manager = RetentionManager(wiring.unit_of_work_factory, wiring.config.retention, clock=clock)

    def body() -> JobOutcome:
        report = manager.run()
        failed = [step for step in report.steps if not step.ok]
        return JobOutcome(
            items_synced=report.cleaned,
            counters={
                "cleaned": report.cleaned,
                "kept": report.kept,
                "affected": report.affected,
                "steps": report.as_counters(),
                "failed_steps": [step.name for step in failed],
            },
            success=report.success,
            error_message="; ".join(f"{step.name}: {step.error}" for step in failed) or None,
        )

    report = wiring.runner.run(JOB_CLEANUP, body)
    counters = report.outcome.counters
    response: dict[str, Any] = {
        "success": report.outcome.success,
        "cleaned": counters["cleaned"],
        "kept": counters["kept"],
        "affected": counters["affected"],
        "steps": counters["steps"],
        "items_synced": report.outcome.items_synced,
    }
    if report.outcome.error_message:
        response["error"] = report.outcome.error_message
    return response


def cleanup_old_news(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Trim capped news categories and drop aged news outside the exempt ones."""

    wiring = _wire(unit_of_work_factory, config, clock)
    manager = RetentionManager(wiring.unit_of_work_factory, wiring.config.retention, clock=clock)

    def body() -> JobOutcome:
        pruned = manager.prune_news()
        return JobOutcome(
            items_synced=pruned.deleted,
            counters={
                "deleted_over_limit": pruned.deleted_over_limit,
                "deleted_aged": pruned.deleted_aged,
            },
        )

    report = wiring.runner.run(JOB_NEWS_CLEANUP, body)
    return {
        "success": True,
        "deleted": report.outcome.items_synced,
        "items_synced": report.outcome.items_synced,
        **report.outcome.counters,
    }


def announce_flight_ready_job(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    wiring = _wire(unit_of_work_factory, config, clock)

    def body() -> JobOutcome:
        result = announce_flight_ready(
            unit_of_work_factory=wiring.unit_of_work_factory,
            lookback=wiring.config.retention.flight_ready_lookback,
            clock=wiring.clock,
        )
        return JobOutcome(items_synced=result.created, counters={"candidates": result.candidates})

    report = wiring.runner.run(JOB_FLIGHT_READY_NEWS, body)
    return {
        "success": True,
        "created": report.outcome.items_synced,
        "candidates": report.outcome.counters["candidates"],
        "items_synced": report.outcome.items_synced,
    }


def parse_preferred_source(value: object) -> PreferredSource:
    if not isinstance(value, str):
        raise ValidationError("preferred_source must be a string")
    try:
        return PreferredSource(value.strip().lower())
    except ValueError as exc:
        choices = ", ".join(source.value for source in PreferredSource)
        raise ValidationError(f"preferred_source must be one of: {choices}") from exc


def override_ship_source(
    *,
    entity_key: str,
    preferred_source: PreferredSource | str,
    reason: str | None = None,
    clear_cache: bool = False,
    set_by: str | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Pin (or unpin) a ship's preferred provider and re-reconcile it at once."""

    slug = entity_key.strip()
    if not slug:
        raise ValidationError("entity_key must not be empty")
    source = parse_preferred_source(preferred_source)

    wiring = _wire(unit_of_work_factory, config, clock)
    engine = ReconciliationEngine(precedence=wiring.config.precedence)
    cache = wiring.cache_manager()

    def body() -> JobOutcome:
        result = apply_source_override(
            slug=slug,
            preferred_source=source,
            unit_of_work_factory=wiring.unit_of_work_factory,
            engine=engine,
            reason=reason,
            clear_cache=clear_cache,
            set_by=set_by,
            cache=cache,
            clock=wiring.clock,
        )
        return JobOutcome(
            items_synced=1 if result.applied else 0,
            counters={
                "entity_key": slug,
                "preferred_source": source.value,
                "applied": result.applied,
                "action": result.action.value,
                "cache_entries_cleared": result.cache_entries_cleared,
            },
        )

    report = wiring.runner.run(
        JOB_SHIP_OVERRIDE,
        body,
        lock_name=JOB_SHIPS_SYNC,
        audit_action="ship_data_override",
        actor=set_by or "admin",
    )
    return {"success": True, **report.outcome.counters}


def probe_slug(
    probe_key: str,
    *,
    probe: ModelProbe | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Check whether a FleetYards model key resolves and how complete its data is."""

    key = probe_key.strip()
    if not key:
        raise ValidationError("probe_key is required")
    wiring = _wire(unit_of_work_factory, config, clock)
    effective_probe = probe or FleetYardsProbe()
    response: dict[str, Any] = {}

    def body() -> JobOutcome:
        report = effective_probe(key)
        response.update(
            success=True,
            available=report.available,
            data=report.data,
            quality_score=report.quality,
            slug_tested=report.probe_key,
        )
        if report.error:
            response["error"] = report.error
        return JobOutcome(counters={"available": report.available})

    wiring.runner.run(JOB_SLUG_PROBE, body, use_lock=False)
    return response


def confirm_rumor_job(
    *,
    rumor_id: uuid.UUID | str,
    ship_slug: str,
    actor: str = "admin",
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    config: SyncConfig | None = None,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Link a rumor to the ship it turned out to be and retire it."""

    try:
        parsed_id = rumor_id if isinstance(rumor_id, uuid.UUID) else uuid.UUID(str(rumor_id))
    except ValueError as exc:
        raise ValidationError(f"Invalid rumor id: {rumor_id}") from exc
    if not ship_slug.strip():
        raise ValidationError("ship_slug must not be empty")

    wiring = _wire(unit_of_work_factory, config, clock)

    def body() -> JobOutcome:
        record = confirm_rumor(
            rumor_id=parsed_id,
            ship_slug=ship_slug.strip(),
            unit_of_work_factory=wiring.unit_of_work_factory,
            clock=wiring.clock,
        )
        if record is None:
            raise ValidationError(f"Unknown rumor: {parsed_id}")
        return JobOutcome(
            items_synced=1,
            counters={"rumor_id": str(parsed_id), "confirmed_ship_slug": ship_slug.strip()},
        )

    report = wiring.runner.run(JOB_RUMOR_CONFIRM, body, use_lock=False, actor=actor)
    return {"success": True, **report.outcome.counters}
