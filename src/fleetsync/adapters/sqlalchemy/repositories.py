"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import delete, func, null, select, update
from sqlalchemy.dialects import postgresql, sqlite

from fleetsync.adapters.sqlalchemy.mappings import (
    audit_log_table,
    news_table,
    provider_cache_table,
    rumor_table,
    ship_table,
    sync_lock_table,
    sync_progress_table,
)
from fleetsync.domain.errors import StoreError
from fleetsync.domain.model import (
    AuditLogEntry,
    CanonicalShip,
    NewsItem,
    ProgressStatus,
    ProviderCacheEntry,
    RumorRecord,
    SourcePreference,
    SyncLock,
    SyncProgress,
)
from fleetsync.domain.ports import KnownShips, RawPruneResult

if TYPE_CHECKING:
    import uuid
    from collections.abc import Collection, Sequence
    from datetime import datetime

    from sqlalchemy import CursorResult, Result
    from sqlalchemy.orm import Session

    from fleetsync.domain.model import Provider


def _rowcount(result: Result[Any]) -> int:
    return cast("CursorResult[Any]", result).rowcount


class SqlAlchemyShipRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: CanonicalShip) -> None:
        self.session.add(entity)

    def get(self, slug: str) -> CanonicalShip | None:
        return self.session.get(CanonicalShip, slug)

    def list_slugs(self) -> list[str]:
        stmt = select(ship_table.c.slug).order_by(ship_table.c.slug)
        return list(self.session.execute(stmt).scalars())

    def known(self) -> KnownShips:
        rows = self.session.execute(select(ship_table.c.name, ship_table.c.slug)).all()
        return KnownShips(
            names=frozenset(name.strip().lower() for name, _ in rows if name),
            slugs=frozenset(slug.lower() for _, slug in rows),
        )

    def flight_ready_since(self, cutoff: datetime) -> Sequence[CanonicalShip]:
        stmt = (
            select(CanonicalShip)
            .where(ship_table.c.flight_ready_since >= cutoff)
            .order_by(ship_table.c.flight_ready_since)
        )
        return self.session.execute(stmt).scalars().all()

    def prune_raw_payloads(self, cutoff: datetime) -> RawPruneResult:
        recent_stmt = (
            select(func.count()).select_from(ship_table).where(ship_table.c.updated_at >= cutoff)
        )
        kept = self.session.execute(recent_stmt).scalar_one()

        stmt = update(ship_table).values(raw_wiki=null(), raw_fleetyards=null())
        if kept:
            stmt = stmt.where(ship_table.c.updated_at < cutoff)
        result = self.session.execute(stmt)
        return RawPruneResult(cleaned=_rowcount(result), kept=kept)


class SqlAlchemyPreferenceRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SourcePreference) -> None:
        self.session.add(entity)

    def get(self, slug: str) -> SourcePreference | None:
        return self.session.get(SourcePreference, slug)


class SqlAlchemyProviderCacheRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def latest(self, provider: Provider) -> ProviderCacheEntry | None:
        stmt = (
            select(ProviderCacheEntry)
            .where(provider_cache_table.c.provider == provider)
            .order_by(provider_cache_table.c.fetched_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def replace(self, entry: ProviderCacheEntry) -> None:
        self.delete(entry.provider)
        self.session.add(entry)

    def delete(self, provider: Provider | None = None) -> int:
        stmt = delete(provider_cache_table)
        if provider is not None:
            stmt = stmt.where(provider_cache_table.c.provider == provider)
        return _rowcount(self.session.execute(stmt))

    def delete_expired(self, now: datetime) -> int:
        stmt = delete(provider_cache_table).where(provider_cache_table.c.expires_at <= now)
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyLockRepository:
    """Job locks; acquisition is a single upsert so concurrent callers cannot both win."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, name: str) -> SyncLock | None:
        return self.session.get(SyncLock, name)

    def try_acquire(self, name: str, *, now: datetime, expires_at: datetime) -> bool:
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            insert = sqlite.insert
        elif dialect == "postgresql":
            insert = postgresql.insert
        else:
            raise StoreError(f"Atomic lock acquisition is not supported on {dialect}")

        stmt = insert(sync_lock_table).values(name=name, locked_at=now, expires_at=expires_at)
        # Only an expired holder may be taken over; a live one leaves the row untouched.
        stmt = stmt.on_conflict_do_update(
            index_elements=[sync_lock_table.c.name],
            set_={"locked_at": now, "expires_at": expires_at},
            where=sync_lock_table.c.expires_at <= now,
        )
        return _rowcount(self.session.execute(stmt)) == 1

    def release(self, name: str) -> bool:
        stmt = delete(sync_lock_table).where(sync_lock_table.c.name == name)
        return _rowcount(self.session.execute(stmt)) > 0

    def delete_expired(self, now: datetime) -> int:
        stmt = delete(sync_lock_table).where(sync_lock_table.c.expires_at <= now)
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyProgressRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: SyncProgress) -> None:
        self.session.add(entity)

    def get(self, progress_id: uuid.UUID) -> SyncProgress | None:
        return self.session.get(SyncProgress, progress_id)

    def list_running_before(self, cutoff: datetime) -> Sequence[SyncProgress]:
        stmt = (
            select(SyncProgress)
            .where(sync_progress_table.c.status == ProgressStatus.RUNNING)
            .where(sync_progress_table.c.started_at < cutoff)
            .order_by(sync_progress_table.c.started_at)
        )
        return self.session.execute(stmt).scalars().all()

    def latest(self, job_name: str) -> SyncProgress | None:
        stmt = (
            select(SyncProgress)
            .where(sync_progress_table.c.job_name == job_name)
            .order_by(sync_progress_table.c.started_at.desc())
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def delete_started_before(self, cutoff: datetime) -> int:
        stmt = delete(sync_progress_table).where(sync_progress_table.c.started_at < cutoff)
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyRumorRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: RumorRecord) -> None:
        self.session.add(entity)

    def get(self, rumor_id: uuid.UUID) -> RumorRecord | None:
        return self.session.get(RumorRecord, rumor_id)

    def find_active(self, key: str) -> RumorRecord | None:
        stmt = (
            select(RumorRecord)
            .where(rumor_table.c.codename_key == key)
            .where(rumor_table.c.is_active.is_(True))
            .order_by(rumor_table.c.first_mentioned)
            .limit(1)
        )
        return self.session.execute(stmt).scalars().first()

    def list_active(self) -> Sequence[RumorRecord]:
        stmt = (
            select(RumorRecord)
            .where(rumor_table.c.is_active.is_(True))
            .order_by(rumor_table.c.last_updated.desc())
        )
        return self.session.execute(stmt).scalars().all()


class SqlAlchemyNewsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: NewsItem) -> None:
        self.session.add(entity)

    def has_dedupe_key(self, dedupe_key: str) -> bool:
        stmt = select(news_table.c.id).where(news_table.c.dedupe_key == dedupe_key).limit(1)
        return self.session.execute(stmt).first() is not None

    def latest_ids(self, category: str, limit: int) -> list[uuid.UUID]:
        stmt = (
            select(news_table.c.id)
            .where(news_table.c.category == category)
            .order_by(news_table.c.published_at.desc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars())

    def delete_category_except(self, category: str, keep: Collection[uuid.UUID]) -> int:
        stmt = delete(news_table).where(news_table.c.category == category)
        if keep:
            stmt = stmt.where(news_table.c.id.not_in(list(keep)))
        return _rowcount(self.session.execute(stmt))

    def delete_published_before(
        self, cutoff: datetime, *, exclude_categories: Collection[str]
    ) -> int:
        stmt = delete(news_table).where(news_table.c.published_at < cutoff)
        if exclude_categories:
            stmt = stmt.where(news_table.c.category.not_in(list(exclude_categories)))
        return _rowcount(self.session.execute(stmt))


class SqlAlchemyAuditLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entity: AuditLogEntry) -> None:
        self.session.add(entity)

    def list_for(self, target: str) -> Sequence[AuditLogEntry]:
        stmt = (
            select(AuditLogEntry)
            .where(audit_log_table.c.target == target)
            .order_by(audit_log_table.c.at)
        )
        return self.session.execute(stmt).scalars().all()


if TYPE_CHECKING:
    from fleetsync.domain.ports import (
        AuditLogRepository,
        LockRepository,
        NewsRepository,
        PreferenceRepository,
        ProgressRepository,
        ProviderCacheRepository,
        RumorRepository,
        ShipRepository,
    )

    _session_stub = cast("Session", object())
    _ship_repo: ShipRepository = SqlAlchemyShipRepository(_session_stub)
    _preference_repo: PreferenceRepository = SqlAlchemyPreferenceRepository(_session_stub)
    _cache_repo: ProviderCacheRepository = SqlAlchemyProviderCacheRepository(_session_stub)
    _lock_repo: LockRepository = SqlAlchemyLockRepository(_session_stub)
    _progress_repo: ProgressRepository = SqlAlchemyProgressRepository(_session_stub)
    _rumor_repo: RumorRepository = SqlAlchemyRumorRepository(_session_stub)
    _news_repo: NewsRepository = SqlAlchemyNewsRepository(_session_stub)
    _audit_repo: AuditLogRepository = SqlAlchemyAuditLogRepository(_session_stub)
