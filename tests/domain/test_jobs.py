from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from fleetsync.config.sync import LockConfig
from fleetsync.domain.errors import LockContentionError
from fleetsync.domain.jobs import JobOutcome, JobRunner
from fleetsync.domain.model import ProgressStatus

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.adapters.sqlalchemy import SqlAlchemyFleetUnitOfWork
    from tests.helpers.fleet import FakeClock

    UowFactory = Callable[[], SqlAlchemyFleetUnitOfWork]


def test_successful_run_closes_ledger_and_audits(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)

    def body() -> JobOutcome:
        clock.advance(seconds=3)
        return JobOutcome(items_synced=4, counters={"created": 4})

    report = runner.run("ships-sync", body, audit_action="manual_sync_ships", actor="admin")

    assert report.status is ProgressStatus.SUCCESS
    assert report.duration_ms == 3000
    with sqlite_unit_of_work() as uow:
        progress = uow.repositories.progress.get(report.progress_id)
        assert progress is not None
        assert progress.status is ProgressStatus.SUCCESS
        assert progress.items_synced == 4
        assert progress.duration_ms == 3000
        assert progress.details == {"created": 4}
        (entry,) = uow.repositories.audit.list_for("ships-sync")
        assert entry.action == "manual_sync_ships"
        assert entry.actor == "admin"
        assert entry.meta["status"] == "success"
        assert uow.repositories.locks.get("ships-sync") is None


def test_failing_body_is_recorded_and_reraised(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)

    def body() -> JobOutcome:
        raise RuntimeError("provider exploded")

    with pytest.raises(RuntimeError, match="provider exploded"):
        runner.run("rumor-sync", body)

    with sqlite_unit_of_work() as uow:
        progress = uow.repositories.progress.latest("rumor-sync")
        assert progress is not None
        assert progress.status is ProgressStatus.FAILED
        assert progress.error_message == "provider exploded"
        assert progress.completed_at is not None
        assert uow.repositories.locks.get("rumor-sync") is None


def test_unsuccessful_outcome_marks_run_failed(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)

    report = runner.run(
        "cleanup", lambda: JobOutcome(success=False, error_message="expired_cache: locked")
    )

    assert report.status is ProgressStatus.FAILED
    with sqlite_unit_of_work() as uow:
        progress = uow.repositories.progress.get(report.progress_id)
        assert progress is not None
        assert progress.error_message == "expired_cache: locked"


def test_held_lock_rejects_run_without_ledger_row(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)
    runner.locks.acquire("ships-sync", LockConfig().ttl_for("ships-sync"))
    calls: list[str] = []

    def body() -> JobOutcome:
        calls.append("ran")
        return JobOutcome()

    with pytest.raises(LockContentionError):
        runner.run("ships-sync", body)

    assert calls == []
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.progress.latest("ships-sync") is None


def test_unlocked_jobs_run_concurrently_with_locked_ones(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)
    runner.locks.acquire("slug-probe", LockConfig().default_ttl)

    report = runner.run("slug-probe", JobOutcome, use_lock=False)

    assert report.status is ProgressStatus.SUCCESS


def test_shared_lock_name_serialises_different_jobs(
    sqlite_unit_of_work: UowFactory, clock: FakeClock
) -> None:
    runner = JobRunner(sqlite_unit_of_work, clock=clock)
    runner.locks.acquire("ships-sync", LockConfig().ttl_for("ships-sync"))

    with pytest.raises(LockContentionError):
        runner.run("ship-data-override", JobOutcome, lock_name="ships-sync")

    runner.locks.release("ships-sync")
    report = runner.run("ship-data-override", JobOutcome, lock_name="ships-sync")

    assert report.job_name == "ship-data-override"
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.progress.latest("ship-data-override") is not None
        assert uow.repositories.audit.list_for("ship-data-override")
        assert uow.repositories.locks.get("ships-sync") is None
