"""Ports for persisting domain aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import uuid
    from collections.abc import Collection, Sequence
    from datetime import datetime

    from fleetsync.domain.model import (
        AuditLogEntry,
        CanonicalShip,
        NewsItem,
        Provider,
        ProviderCacheEntry,
        RumorRecord,
        SourcePreference,
        SyncProgress,
    )


@dataclass(frozen=True, slots=True)
class KnownShips:
    """Lower-cased names and slugs of every canonical ship."""

    names: frozenset[str]
    slugs: frozenset[str]


@dataclass(frozen=True, slots=True)
class RawPruneResult:
    cleaned: int
    kept: int


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class ShipRepository(Repository["CanonicalShip"], Protocol):
    def get(self, slug: str) -> CanonicalShip | None: ...

    def list_slugs(self) -> list[str]: ...

    def known(self) -> KnownShips: ...

    def flight_ready_since(self, cutoff: datetime) -> Sequence[CanonicalShip]: ...

    def prune_raw_payloads(self, cutoff: datetime) -> RawPruneResult: ...


@runtime_checkable
class PreferenceRepository(Repository["SourcePreference"], Protocol):
    def get(self, slug: str) -> SourcePreference | None: ...


@runtime_checkable
class ProviderCacheRepository(Protocol):
    def latest(self, provider: Provider) -> ProviderCacheEntry | None: ...

    def replace(self, entry: ProviderCacheEntry) -> None:
        """Delete every snapshot of the entry's provider, then store ``entry``."""
        ...

    def delete(self, provider: Provider | None = None) -> int: ...

    def delete_expired(self, now: datetime) -> int: ...


@runtime_checkable
class LockRepository(Protocol):
    def try_acquire(self, name: str, *, now: datetime, expires_at: datetime) -> bool:
        """Atomically insert or take over an expired lock; ``False`` when a live one exists."""
        ...

    def release(self, name: str) -> bool: ...

    def delete_expired(self, now: datetime) -> int: ...


@runtime_checkable
class ProgressRepository(Repository["SyncProgress"], Protocol):
    def get(self, progress_id: uuid.UUID) -> SyncProgress | None: ...

    def list_running_before(self, cutoff: datetime) -> Sequence[SyncProgress]: ...

    def latest(self, job_name: str) -> SyncProgress | None: ...

    def delete_started_before(self, cutoff: datetime) -> int: ...


@runtime_checkable
class RumorRepository(Repository["RumorRecord"], Protocol):
    def get(self, rumor_id: uuid.UUID) -> RumorRecord | None: ...

    def find_active(self, key: str) -> RumorRecord | None: ...

    def list_active(self) -> Sequence[RumorRecord]: ...


@runtime_checkable
class NewsRepository(Repository["NewsItem"], Protocol):
    def has_dedupe_key(self, dedupe_key: str) -> bool: ...

    def latest_ids(self, category: str, limit: int) -> list[uuid.UUID]: ...

    def delete_category_except(self, category: str, keep: Collection[uuid.UUID]) -> int: ...

    def delete_published_before(
        self, cutoff: datetime, *, exclude_categories: Collection[str]
    ) -> int: ...


@runtime_checkable
class AuditLogRepository(Repository["AuditLogEntry"], Protocol):
    """Append-only audit trail."""
