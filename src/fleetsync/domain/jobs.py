"""Job orchestration and the run ledger.

Every job goes through :class:`JobRunner`: take the job's lock, open a ``running``
ledger row, execute the body, then (on success and failure alike) close the row,
append an audit entry and release the lock. The closing writes are best-effort so a
flaky store cannot mask the body's own outcome.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fleetsync.config.sync import LockConfig
from fleetsync.domain.clock import elapsed_ms, utcnow
from fleetsync.domain.errors import StoreError
from fleetsync.domain.locking import LockManager
from fleetsync.domain.model import AuditLogEntry, ProgressStatus, SyncProgress

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.domain.clock import Clock
    from fleetsync.domain.ports import UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class JobOutcome:
    """What a job body reports back to the runner."""

    items_synced: int = 0
    counters: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_message: str | None = None


@dataclass(slots=True)
class JobReport:
    job_name: str
    progress_id: uuid.UUID
    status: ProgressStatus
    duration_ms: int
    outcome: JobOutcome


class JobRunner:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        *,
        locks: LockManager | None = None,
        lock_config: LockConfig | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self._clock = clock
        self.locks = locks or LockManager(unit_of_work_factory, clock=clock)
        self.lock_config = lock_config or LockConfig()

    def run(
        self,
        job_name: str,
        body: Callable[[], JobOutcome],
        *,
        use_lock: bool = True,
        lock_name: str | None = None,
        audit_action: str | None = None,
        actor: str = "system",
    ) -> JobReport:
        """Run ``body`` under the job's lock; raises ``LockContentionError`` when busy.

        Jobs that write the same rows pass a shared ``lock_name``; the ledger and audit
        entries still carry ``job_name``. Exceptions from ``body`` are re-raised after the
        ledger row is closed as failed.
        """

        lock = lock_name or job_name
        if use_lock:
            self.locks.require(lock, self.lock_config.ttl_for(lock))

        try:
            progress_id = self._open_ledger(job_name)
        except StoreError:
            if use_lock:
                self._release(lock)
            raise

        started = self._clock()
        log.info(f"Job {job_name} started ({progress_id})")
        outcome: JobOutcome | None = None
        status = ProgressStatus.FAILED
        error_message: str | None = None
        try:
            outcome = body()
            status = ProgressStatus.SUCCESS if outcome.success else ProgressStatus.FAILED
            error_message = outcome.error_message
        except Exception as exc:
            error_message = str(exc) or type(exc).__name__
            log.exception(f"Job {job_name} failed")
            raise
        finally:
            final = outcome or JobOutcome(success=False, error_message=error_message)
            self._close_ledger(progress_id, status, final, error_message)
            self._audit(job_name, audit_action or job_name, actor, status, final)
            if use_lock:
                self._release(lock)

        duration = elapsed_ms(started, self._clock())
        log.info(f"Job {job_name} finished: {status} in {duration}ms")
        return JobReport(
            job_name=job_name,
            progress_id=progress_id,
            status=status,
            duration_ms=duration,
            outcome=final,
        )

    def _open_ledger(self, job_name: str) -> uuid.UUID:
        progress = SyncProgress(job_name=job_name, started_at=self._clock())
        with self._uow_factory() as uow:
            uow.repositories.progress.add(progress)
            uow.commit()
        return progress.id

    def _close_ledger(
        self,
        progress_id: uuid.UUID,
        status: ProgressStatus,
        outcome: JobOutcome,
        error_message: str | None,
    ) -> None:
        try:
            with self._uow_factory() as uow:
                progress = uow.repositories.progress.get(progress_id)
                if progress is None:
                    log.warning(f"Ledger row {progress_id} vanished before completion")
                    return
                if progress.status is not ProgressStatus.RUNNING:
                    # Already cancelled as stuck; keep that verdict.
                    return
                progress.finish(
                    status,
                    now=self._clock(),
                    items_synced=outcome.items_synced,
                    error_message=error_message,
                    details=outcome.counters,
                )
                uow.commit()
        except StoreError:
            log.exception(f"Could not close ledger row {progress_id}")

    def _audit(
        self,
        job_name: str,
        action: str,
        actor: str,
        status: ProgressStatus,
        outcome: JobOutcome,
    ) -> None:
        entry = AuditLogEntry(
            at=self._clock(),
            actor=actor,
            action=action,
            target=job_name,
            meta={"status": status.value, "items_synced": outcome.items_synced, **outcome.counters},
        )
        try:
            with self._uow_factory() as uow:
                uow.repositories.audit.add(entry)
                uow.commit()
        except StoreError:
            log.exception(f"Could not write audit entry for {job_name}")

    def _release(self, name: str) -> None:
        try:
            self.locks.release(name)
        except StoreError:
            log.exception(f"Could not release lock {name}; it will expire on its own")
