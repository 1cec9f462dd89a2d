from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from fleetsync.domain.errors import StoreError
from fleetsync.domain.model import (
    AuditLogEntry,
    ChangeFlags,
    EvidenceItem,
    NewsItem,
    ProgressStatus,
    Provenance,
    Provider,
    ProviderCacheEntry,
    RumorRecord,
    SyncProgress,
)
from tests.helpers.fleet import T0, make_ship

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.adapters.sqlalchemy import SqlAlchemyFleetUnitOfWork

    UowFactory = Callable[[], SqlAlchemyFleetUnitOfWork]


def test_ship_documents_round_trip(sqlite_unit_of_work: UowFactory) -> None:
    provenance = Provenance(
        sources=("wiki", "fleetyards"),
        recorded_at=T0,
        source_url="https://wiki.example/Cutlass_Black",
        changes=ChangeFlags(data=True, image=True),
    )
    ship = make_ship(
        "cutlass-black",
        name="Cutlass Black",
        specs={"crew_max": 3, "armament": {"weapons": ["S3 Panther"]}},
        provenance=provenance,
        raw_wiki={"name": "Cutlass Black"},
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(ship)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.ships.get("cutlass-black")
        assert stored is not None
        assert stored.specs == {"crew_max": 3, "armament": {"weapons": ["S3 Panther"]}}
        assert stored.provenance == provenance
        assert stored.updated_at == T0
        assert stored.raw_wiki == {"name": "Cutlass Black"}
        assert stored.raw_fleetyards is None


def test_known_ships_are_lowercased(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("hull-c", name=" Hull C "))
        uow.repositories.ships.add(make_ship("arrow", name="Arrow"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        known = uow.repositories.ships.known()
        assert known.names == frozenset({"hull c", "arrow"})
        assert known.slugs == frozenset({"hull-c", "arrow"})
        assert uow.repositories.ships.list_slugs() == ["arrow", "hull-c"]


def test_flight_ready_since_filters_by_cutoff(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("old", flight_ready_since=T0 - timedelta(days=9)))
        uow.repositories.ships.add(make_ship("new", flight_ready_since=T0 - timedelta(days=1)))
        uow.repositories.ships.add(make_ship("concept"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        ships = uow.repositories.ships.flight_ready_since(T0 - timedelta(days=7))
        assert [ship.slug for ship in ships] == ["new"]


def test_prune_raw_payloads_keeps_recent_rows(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(
            make_ship("stale", updated_at=T0 - timedelta(days=30), raw_wiki={"a": 1})
        )
        uow.repositories.ships.add(make_ship("fresh", updated_at=T0, raw_wiki={"b": 2}))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        result = uow.repositories.ships.prune_raw_payloads(T0 - timedelta(days=7))
        uow.commit()
    assert (result.cleaned, result.kept) == (1, 1)

    with sqlite_unit_of_work() as uow:
        stale = uow.repositories.ships.get("stale")
        fresh = uow.repositories.ships.get("fresh")
        assert stale is not None
        assert fresh is not None
        assert stale.raw_wiki is None
        assert fresh.raw_wiki == {"b": 2}


def test_cache_replace_keeps_one_snapshot_per_provider(sqlite_unit_of_work: UowFactory) -> None:
    first = ProviderCacheEntry(
        provider=Provider.FLEETYARDS,
        payload=[{"slug": "a"}],
        fetched_at=T0,
        expires_at=T0 + timedelta(hours=24),
    )
    second = ProviderCacheEntry(
        provider=Provider.FLEETYARDS,
        payload=[{"slug": "b"}],
        fetched_at=T0 + timedelta(hours=1),
        expires_at=T0 + timedelta(hours=25),
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.cache.replace(first)
        uow.commit()
    with sqlite_unit_of_work() as uow:
        uow.repositories.cache.replace(second)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        latest = uow.repositories.cache.latest(Provider.FLEETYARDS)
        assert latest is not None
        assert latest.payload == [{"slug": "b"}]
        assert uow.repositories.cache.latest(Provider.WIKI) is None
        assert uow.repositories.cache.delete_expired(T0 + timedelta(hours=25)) == 1
        uow.commit()


def test_lock_acquisition_respects_live_holder(sqlite_unit_of_work: UowFactory) -> None:
    locks_expire = T0 + timedelta(minutes=30)
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.locks.try_acquire("ships-sync", now=T0, expires_at=locks_expire)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        later = T0 + timedelta(minutes=10)
        assert not uow.repositories.locks.try_acquire(
            "ships-sync", now=later, expires_at=later + timedelta(minutes=30)
        )
        assert uow.repositories.locks.try_acquire(
            "ships-sync", now=locks_expire, expires_at=locks_expire + timedelta(minutes=30)
        )
        uow.commit()

    with sqlite_unit_of_work() as uow:
        lock = uow.repositories.locks.get("ships-sync")
        assert lock is not None
        assert lock.locked_at == locks_expire
        assert uow.repositories.locks.release("ships-sync")
        assert not uow.repositories.locks.release("ships-sync")
        uow.commit()


def test_progress_queries(sqlite_unit_of_work: UowFactory) -> None:
    stuck = SyncProgress(job_name="ships-sync", started_at=T0 - timedelta(hours=3))
    done = SyncProgress(job_name="ships-sync", started_at=T0 - timedelta(hours=1))
    done.finish(ProgressStatus.SUCCESS, now=T0, items_synced=4)
    with sqlite_unit_of_work() as uow:
        uow.repositories.progress.add(stuck)
        uow.repositories.progress.add(done)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        running = uow.repositories.progress.list_running_before(T0 - timedelta(hours=2))
        assert [row.id for row in running] == [stuck.id]
        latest = uow.repositories.progress.latest("ships-sync")
        assert latest is not None
        assert latest.id == done.id
        assert latest.items_synced == 4
        assert uow.repositories.progress.delete_started_before(T0 - timedelta(hours=2)) == 1
        uow.commit()


def test_rumor_evidence_round_trips(sqlite_unit_of_work: UowFactory) -> None:
    record = RumorRecord(
        codename="Hull F",
        first_mentioned=T0,
        last_updated=T0,
        evidence=[
            EvidenceItem(
                source="https://rsi.example/1", excerpt="in whitebox", date=T0, url=None
            )
        ],
    )
    with sqlite_unit_of_work() as uow:
        uow.repositories.rumors.add(record)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        found = uow.repositories.rumors.find_active("hull f")
        assert found is not None
        assert found.id == record.id
        assert found.evidence == record.evidence
        assert uow.repositories.rumors.find_active("hull g") is None


def test_news_retention_queries(sqlite_unit_of_work: UowFactory) -> None:
    items = [
        NewsItem(title=f"Ship {i}", category="New Ships", published_at=T0 - timedelta(days=i))
        for i in range(3)
    ]
    patch_notes = NewsItem(title="Patch", category="Patch", published_at=T0 - timedelta(days=90))
    with sqlite_unit_of_work() as uow:
        for item in [*items, patch_notes]:
            uow.repositories.news.add(item)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        news = uow.repositories.news
        keep = news.latest_ids("New Ships", 2)
        assert keep == [items[0].id, items[1].id]
        assert news.delete_category_except("New Ships", keep) == 1
        assert (
            news.delete_published_before(
                T0 - timedelta(days=30), exclude_categories=["New Ships"]
            )
            == 1
        )
        uow.commit()


def test_audit_entries_listed_per_target(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.audit.add(
            AuditLogEntry(at=T0, action="source_override", target="hull-c", meta={"to": "wiki"})
        )
        uow.repositories.audit.add(AuditLogEntry(at=T0, action="confirm", target="arrow"))
        uow.commit()

    with sqlite_unit_of_work() as uow:
        (entry,) = uow.repositories.audit.list_for("hull-c")
        assert entry.meta == {"to": "wiki"}


def test_duplicate_slug_surfaces_as_store_error(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("arrow"))
        uow.commit()

    with pytest.raises(StoreError), sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("arrow", content_hash="other"))
        uow.commit()
