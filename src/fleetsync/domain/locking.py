"""Named, TTL-bounded job locks kept in the shared store."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import LockContentionError, StoreError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import timedelta

    from fleetsync.domain.clock import Clock
    from fleetsync.domain.ports import UnitOfWorkFactory

log = getLogger(__name__)


class LockManager:
    """Acquire and release job locks; each call commits on its own so peers see it at once."""

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory, *, clock: Clock = utcnow) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock

    def acquire(self, name: str, ttl: timedelta) -> bool:
        now = self._clock()
        with self._uow_factory() as uow:
            acquired = uow.repositories.locks.try_acquire(name, now=now, expires_at=now + ttl)
            uow.commit()
        if acquired:
            log.debug(f"Acquired lock {name} until {now + ttl:%H:%M:%S}")
        else:
            log.info(f"Lock {name} is held by another invocation")
        return acquired

    def require(self, name: str, ttl: timedelta) -> None:
        if not self.acquire(name, ttl):
            raise LockContentionError(name)

    def release(self, name: str) -> None:
        with self._uow_factory() as uow:
            uow.repositories.locks.release(name)
            uow.commit()

    def sweep_expired(self) -> int:
        with self._uow_factory() as uow:
            deleted = uow.repositories.locks.delete_expired(self._clock())
            uow.commit()
        return deleted

    @contextmanager
    def hold(self, name: str, ttl: timedelta) -> Iterator[None]:
        self.require(name, ttl)
        try:
            yield
        finally:
            try:
                self.release(name)
            except StoreError:
                log.exception(f"Could not release lock {name}; it will expire on its own")
