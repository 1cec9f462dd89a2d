"""Time helpers shared by the jobs; every timestamp in the system is UTC."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

type Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def elapsed_ms(started_at: datetime, finished_at: datetime) -> int:
    return int((ensure_utc(finished_at) - ensure_utc(started_at)).total_seconds() * 1000)
