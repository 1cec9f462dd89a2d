from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from fleetsync.domain.errors import LockContentionError
from fleetsync.domain.locking import LockManager

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.adapters.sqlalchemy import SqlAlchemyFleetUnitOfWork
    from tests.helpers.fleet import FakeClock

TTL = timedelta(minutes=10)


def test_second_acquire_fails_while_lock_is_live(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)

    assert locks.acquire("ships-sync", TTL)
    assert not locks.acquire("ships-sync", TTL)
    with pytest.raises(LockContentionError, match="ships-sync is already running"):
        locks.require("ships-sync", TTL)


def test_locks_are_independent_per_job(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)

    assert locks.acquire("ships-sync", TTL)
    assert locks.acquire("cleanup", TTL)


def test_expired_lock_can_be_taken_over(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)
    assert locks.acquire("ships-sync", TTL)

    clock.advance(minutes=10)

    assert locks.acquire("ships-sync", TTL)
    with sqlite_unit_of_work() as uow:
        lock = uow.repositories.locks.get("ships-sync")
        assert lock is not None
        assert lock.locked_at == clock()
        assert lock.expires_at == clock() + TTL


def test_release_frees_the_lock(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)
    assert locks.acquire("cleanup", TTL)

    locks.release("cleanup")

    assert locks.acquire("cleanup", TTL)


def test_hold_releases_after_failure(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)

    with pytest.raises(RuntimeError), locks.hold("rumor-sync", TTL):
        raise RuntimeError("boom")

    assert locks.acquire("rumor-sync", TTL)


def test_sweep_removes_only_expired_locks(
    sqlite_unit_of_work: Callable[[], SqlAlchemyFleetUnitOfWork], clock: FakeClock
) -> None:
    locks = LockManager(sqlite_unit_of_work, clock=clock)
    locks.acquire("short", timedelta(minutes=1))
    locks.acquire("long", timedelta(hours=1))

    clock.advance(minutes=5)

    assert locks.sweep_expired() == 1
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.locks.get("short") is None
        assert uow.repositories.locks.get("long") is not None
