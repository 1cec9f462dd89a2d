"""Collect, filter and merge rumor candidates into rumor records."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from fleetsync.config.sync import RumorConfig
from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import ProviderError, StoreError, ValidationError
from fleetsync.domain.model import RumorRecord
from fleetsync.domain.slugs import slugify

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from fleetsync.domain.clock import Clock
    from fleetsync.domain.model import RumorCandidate
    from fleetsync.domain.ports import KnownShips, RumorSource, UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class RumorSyncResult:
    total_collected: int = 0
    after_filtering: int = 0
    inserted: int = 0
    updated: int = 0
    errors: int = 0
    failed_sources: list[str] = field(default_factory=list)


async def _collect_one(source: RumorSource) -> tuple[list[RumorCandidate], bool]:
    try:
        return await source.collect(), True
    except ProviderError as exc:
        log.warning(f"Rumor source {source.name} failed: {exc}")
        return [], False


async def gather_candidates(
    sources: Sequence[RumorSource],
) -> tuple[list[RumorCandidate], list[str]]:
    """Run every source concurrently; a failing source contributes nothing."""

    results = await asyncio.gather(*(_collect_one(source) for source in sources))
    candidates: list[RumorCandidate] = []
    failed: list[str] = []
    for source, (found, ok) in zip(sources, results, strict=True):
        candidates.extend(found)
        if not ok:
            failed.append(source.name)
    return candidates, failed


def filter_known(
    candidates: Sequence[RumorCandidate],
    known: KnownShips,
) -> list[RumorCandidate]:
    """Drop candidates whose name or slug already belongs to a canonical ship."""

    kept: list[RumorCandidate] = []
    for candidate in candidates:
        name = candidate.display_name.strip().lower()
        if name in known.names or slugify(name) in known.slugs:
            log.debug(f"Dropping rumor {candidate.codename!r}: already in the catalog")
            continue
        kept.append(candidate)
    return kept


def group_by_codename(
    candidates: Sequence[RumorCandidate],
) -> dict[str, list[RumorCandidate]]:
    groups: dict[str, list[RumorCandidate]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.key, []).append(candidate)
    return groups


def sync_rumors(
    *,
    sources: Sequence[RumorSource],
    unit_of_work_factory: UnitOfWorkFactory,
    config: RumorConfig | None = None,
    clock: Clock = utcnow,
) -> RumorSyncResult:
    config = config or RumorConfig()
    result = RumorSyncResult()

    candidates, failed = asyncio.run(gather_candidates(sources))
    result.total_collected = len(candidates)
    result.failed_sources = failed

    with unit_of_work_factory() as uow:
        known = uow.repositories.ships.known()
    surviving = filter_known(candidates, known)
    result.after_filtering = len(surviving)

    for key, group in group_by_codename(surviving).items():
        try:
            created = _merge_group(
                key, group, unit_of_work_factory=unit_of_work_factory, config=config, clock=clock
            )
        except StoreError:
            log.exception(f"Failed to persist rumor {group[0].codename!r}")
            result.errors += 1
            continue
        if created:
            result.inserted += 1
        else:
            result.updated += 1

    log.info(
        "Rumor sync finished: collected=%s, after_filtering=%s, inserted=%s, updated=%s",
        result.total_collected,
        result.after_filtering,
        result.inserted,
        result.updated,
    )
    return result


def _merge_group(
    key: str,
    group: Sequence[RumorCandidate],
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: RumorConfig,
    clock: Clock,
) -> bool:
    now = clock()
    with unit_of_work_factory() as uow:
        rumors = uow.repositories.rumors
        record = rumors.find_active(key)
        created = record is None
        if record is None:
            first, rest = group[0], group[1:]
            record = RumorRecord.from_candidate(first, now=now, evidence_cap=config.evidence_cap)
            rumors.add(record)
        else:
            rest = group
        for candidate in rest:
            record.absorb(candidate, now=now, evidence_cap=config.evidence_cap)
        uow.commit()
    return created


def confirm_rumor(
    *,
    rumor_id: uuid.UUID,
    ship_slug: str,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock = utcnow,
) -> RumorRecord | None:
    """Link a rumor to the canonical ship it turned out to be and retire it."""

    with unit_of_work_factory() as uow:
        record = uow.repositories.rumors.get(rumor_id)
        if record is None:
            return None
        if uow.repositories.ships.get(ship_slug) is None:
            raise ValidationError(f"Unknown ship slug: {ship_slug}")
        record.confirm(ship_slug, now=clock())
        uow.commit()
    return record
