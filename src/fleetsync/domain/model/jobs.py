"""Coordination records: locks, the run ledger, provider snapshots and the audit trail."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from fleetsync.domain.clock import elapsed_ms, ensure_utc, utcnow

from .enums import ProgressStatus, Provider

STUCK_JOB_MESSAGE = "Cancelled due to timeout (zombie instance)"


@dataclass(eq=False, kw_only=True)
class SyncLock:
    name: str
    locked_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return ensure_utc(now) < ensure_utc(self.expires_at)


@dataclass(eq=False, kw_only=True)
class SyncProgress:
    """Ledger row for a single job invocation."""

    id: uuid.UUID = field(default_factory=uuid.uuid4)
    job_name: str
    status: ProgressStatus = ProgressStatus.RUNNING
    started_at: datetime = field(default_factory=utcnow)
    completed_at: datetime | None = None
    duration_ms: int | None = None
    items_synced: int = 0
    error_message: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def is_running(self) -> bool:
        return self.status is ProgressStatus.RUNNING

    def finish(
        self,
        status: ProgressStatus,
        *,
        now: datetime,
        items_synced: int = 0,
        error_message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status = status
        self.completed_at = now
        self.duration_ms = elapsed_ms(self.started_at, now)
        self.items_synced = items_synced
        self.error_message = error_message
        if details is not None:
            self.details = dict(details)

    def cancel(self, *, now: datetime, message: str = STUCK_JOB_MESSAGE) -> None:
        self.finish(
            ProgressStatus.CANCELLED,
            now=now,
            items_synced=self.items_synced,
            error_message=message,
        )


@dataclass(eq=False, kw_only=True)
class ProviderCacheEntry:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    provider: Provider
    payload: list[dict[str, Any]] = field(default_factory=list)
    fetched_at: datetime
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        return ensure_utc(now) < ensure_utc(self.expires_at)


@dataclass(eq=False, kw_only=True)
class AuditLogEntry:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    at: datetime = field(default_factory=utcnow)
    actor: str = "system"
    action: str
    target: str
    meta: dict[str, Any] = field(default_factory=dict)
