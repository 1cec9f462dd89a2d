from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

import pytest

from fleetsync.config.sync import RumorConfig
from fleetsync.domain.errors import ValidationError
from fleetsync.domain.model import DevelopmentStage, RumorRecord
from fleetsync.domain.ports import KnownShips
from fleetsync.domain.rumors import (
    confirm_rumor,
    extract_candidates,
    filter_known,
    group_by_codename,
    sync_rumors,
)
from tests.helpers.fleet import StaticRumorSource, make_candidate, make_ship

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.adapters.sqlalchemy import SqlAlchemyFleetUnitOfWork
    from tests.helpers.fleet import FakeClock

    UowFactory = Callable[[], SqlAlchemyFleetUnitOfWork]


def _report(title: str, excerpt: str, url: str, clock: FakeClock) -> StaticRumorSource:
    return StaticRumorSource(
        "rsi",
        extract_candidates(title=title, excerpt=excerpt, url=url, published_at=clock()),
    )


def test_later_report_advances_stage_and_grows_evidence(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    march = _report(
        "Monthly Report: March 2954",
        "Work continued on the 3rd unannounced vehicle, which is currently in whitebox.",
        "https://rsi.example/comm-link/1",
        clock,
    )
    first = sync_rumors(sources=[march], unit_of_work_factory=sqlite_unit_of_work, clock=clock)

    clock.advance(days=30)
    april = _report(
        "Monthly Report: April 2954",
        "The 3rd unannounced vehicle is now in final review.",
        "https://rsi.example/comm-link/2",
        clock,
    )
    second = sync_rumors(sources=[april], unit_of_work_factory=sqlite_unit_of_work, clock=clock)

    assert (first.inserted, first.updated) == (1, 0)
    assert (second.inserted, second.updated) == (0, 1)
    with sqlite_unit_of_work() as uow:
        (record,) = uow.repositories.rumors.list_active()
        assert record.codename == "Unannounced Vehicle #3"
        assert record.stage is DevelopmentStage.FINAL_REVIEW
        assert record.progress == 85
        assert len(record.evidence) == 2
        assert record.last_updated == clock()
        assert record.first_mentioned < record.last_updated


def test_repeated_report_does_not_duplicate_evidence(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    source = _report(
        "Monthly Report",
        "The 4th unannounced vehicle is in greybox.",
        "https://rsi.example/comm-link/4",
        clock,
    )

    sync_rumors(sources=[source], unit_of_work_factory=sqlite_unit_of_work, clock=clock)
    sync_rumors(sources=[source], unit_of_work_factory=sqlite_unit_of_work, clock=clock)

    with sqlite_unit_of_work() as uow:
        (record,) = uow.repositories.rumors.list_active()
        assert len(record.evidence) == 1


def test_evidence_is_capped(sqlite_unit_of_work: UowFactory, clock: FakeClock) -> None:
    candidates = [make_candidate("Project Hull F", excerpt=f"sighting {i}") for i in range(12)]

    result = sync_rumors(
        sources=[StaticRumorSource("feed", candidates)],
        unit_of_work_factory=sqlite_unit_of_work,
        config=RumorConfig(evidence_cap=10),
        clock=clock,
    )

    assert result.inserted == 1
    with sqlite_unit_of_work() as uow:
        (record,) = uow.repositories.rumors.list_active()
        assert len(record.evidence) == 10
        assert record.evidence[-1].excerpt == "sighting 11"


def test_known_ship_names_are_dropped(sqlite_unit_of_work: UowFactory, clock: FakeClock) -> None:
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("zeus-mk-ii-es", name="Zeus Mk II ES"))
        uow.commit()
    feed = StaticRumorSource(
        "scunpacked",
        [
            make_candidate("zeus mk ii es", possible_name="zeus MK II es"),
            make_candidate("Ironclad Assault"),
        ],
    )

    result = sync_rumors(sources=[feed], unit_of_work_factory=sqlite_unit_of_work, clock=clock)

    assert (result.total_collected, result.after_filtering, result.inserted) == (2, 1, 1)
    with sqlite_unit_of_work() as uow:
        (record,) = uow.repositories.rumors.list_active()
        assert record.codename == "Ironclad Assault"


def test_failing_source_does_not_stop_others(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    sources = [
        StaticRumorSource("rsi", fail=True),
        StaticRumorSource("fleetyards", [make_candidate("Starlancer TAC")]),
    ]

    result = sync_rumors(sources=sources, unit_of_work_factory=sqlite_unit_of_work, clock=clock)

    assert result.failed_sources == ["rsi"]
    assert result.inserted == 1


def test_filter_known_matches_name_or_slug() -> None:
    known = KnownShips(names=frozenset({"polaris"}), slugs=frozenset({"hull-e"}))
    candidates = [
        make_candidate("POLARIS"),
        make_candidate("Hull E"),
        make_candidate("Hull F"),
    ]

    kept = filter_known(candidates, known)

    assert [candidate.codename for candidate in kept] == ["Hull F"]


def test_group_by_codename_folds_case_and_spacing() -> None:
    groups = group_by_codename(
        [make_candidate("Hull  F"), make_candidate("hull f"), make_candidate("Hull G")]
    )

    assert sorted(groups) == ["hull f", "hull g"]
    assert len(groups["hull f"]) == 2


def test_confirm_links_rumor_to_ship(sqlite_unit_of_work: UowFactory, clock: FakeClock) -> None:
    record = RumorRecord(codename="Unannounced Vehicle #3")
    with sqlite_unit_of_work() as uow:
        uow.repositories.ships.add(make_ship("starlancer-max"))
        uow.repositories.rumors.add(record)
        uow.commit()

    confirmed = confirm_rumor(
        rumor_id=record.id,
        ship_slug="starlancer-max",
        unit_of_work_factory=sqlite_unit_of_work,
        clock=clock,
    )

    assert confirmed is not None
    with sqlite_unit_of_work() as uow:
        stored = uow.repositories.rumors.get(record.id)
        assert stored is not None
        assert stored.confirmed_ship_slug == "starlancer-max"
        assert not stored.is_active
        assert uow.repositories.rumors.list_active() == []


def test_confirm_rejects_unknown_ship(sqlite_unit_of_work: UowFactory, clock: FakeClock) -> None:
    record = RumorRecord(codename="Unannounced Vehicle #3")
    with sqlite_unit_of_work() as uow:
        uow.repositories.rumors.add(record)
        uow.commit()

    with pytest.raises(ValidationError):
        confirm_rumor(
            rumor_id=record.id,
            ship_slug="nope",
            unit_of_work_factory=sqlite_unit_of_work,
            clock=clock,
        )


def test_confirm_unknown_rumor_returns_none(sqlite_unit_of_work: UowFactory) -> None:
    assert (
        confirm_rumor(
            rumor_id=uuid.uuid4(),
            ship_slug="starlancer-max",
            unit_of_work_factory=sqlite_unit_of_work,
        )
        is None
    )
