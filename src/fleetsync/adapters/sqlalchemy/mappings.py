"""SQLAlchemy mapping metadata for the fleetsync domain model."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from fleetsync.domain.model import (
    AuditLogEntry,
    CanonicalShip,
    DevelopmentStage,
    EvidenceItem,
    NewsItem,
    PreferredSource,
    ProgressStatus,
    Provenance,
    Provider,
    ProviderCacheEntry,
    RumorRecord,
    RumorSourceType,
    SourcePreference,
    SyncLock,
    SyncProgress,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]
JSONDocument = JSON(none_as_null=True)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


class ProvenanceType(TypeDecorator[Provenance]):
    impl = JSON(none_as_null=True)
    cache_ok = True

    def process_bind_param(
        self, value: Provenance | None, dialect: Dialect
    ) -> dict[str, Any] | None:
        _ = dialect
        if value is None:
            return None
        return value.to_document()

    def process_result_value(self, value: object, dialect: Dialect) -> Provenance | None:
        _ = dialect
        if not isinstance(value, Mapping):
            return None
        return Provenance.from_document(cast(Mapping[str, Any], value))


class EvidenceListType(TypeDecorator[list[EvidenceItem]]):
    impl = JSON
    cache_ok = True

    def process_bind_param(
        self, value: list[EvidenceItem] | None, dialect: Dialect
    ) -> list[dict[str, Any]]:
        _ = dialect
        return [item.to_document() for item in value or ()]

    def process_result_value(self, value: object, dialect: Dialect) -> list[EvidenceItem]:
        _ = dialect
        if not isinstance(value, list):
            return []
        items = cast(list[object], value)
        return [
            EvidenceItem.from_document(cast(Mapping[str, Any], item))
            for item in items
            if isinstance(item, Mapping)
        ]


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Catalog ---------------------------------------------------------------------

ship_table = Table(
    "ships",
    mapper_registry.metadata,
    Column("slug", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("specs", JSONDocument, nullable=False),
    Column("provenance", ProvenanceType(), nullable=True),
    Column("hash", String(64), key="content_hash", nullable=False),
    Column("image_url", String, nullable=True),
    Column("model_url", String, nullable=True),
    Column("flight_ready_since", UTCDateTime(), nullable=True),
    Column("raw_wiki", JSONDocument, nullable=True),
    Column("raw_fleetyards", JSONDocument, nullable=True),
    Column("updated_at", UTCDateTime(), nullable=False, index=True),
    Index("ix_ships_hash", "content_hash", unique=True),
)

ship_preference_table = Table(
    "ship_data_preferences",
    mapper_registry.metadata,
    Column("slug", String, primary_key=True),
    Column(
        "preferred_source",
        Enum(PreferredSource, native_enum=False),
        nullable=False,
        default=PreferredSource.AUTO,
    ),
    Column("reason", Text, nullable=True),
    Column("clear_cache", Boolean, nullable=False, default=False),
    Column("set_by", String, nullable=True),
    Column("set_at", UTCDateTime(), nullable=False),
)

# Coordination ----------------------------------------------------------------

provider_cache_table = Table(
    "provider_cache",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("provider", Enum(Provider, native_enum=False), nullable=False, index=True),
    Column("payload", JSONDocument, nullable=False),
    Column("fetched_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
)

sync_lock_table = Table(
    "sync_locks",
    mapper_registry.metadata,
    Column("name", String, primary_key=True),
    Column("locked_at", UTCDateTime(), nullable=False),
    Column("expires_at", UTCDateTime(), nullable=False),
)

sync_progress_table = Table(
    "sync_progress",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("job_name", String, nullable=False, index=True),
    Column("status", Enum(ProgressStatus, native_enum=False), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False, index=True),
    Column("completed_at", UTCDateTime(), nullable=True),
    Column("duration_ms", Integer, nullable=True),
    Column("items_synced", Integer, nullable=False, default=0),
    Column("error_message", Text, nullable=True),
    Column("details", JSONDocument, nullable=False),
)

audit_log_table = Table(
    "audit_logs",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("at", UTCDateTime(), nullable=False, index=True),
    Column("actor", String, nullable=False),
    Column("action", String, nullable=False),
    Column("target", String, nullable=False),
    Column("meta", JSONDocument, nullable=False),
)

# Content ---------------------------------------------------------------------

# codename_key is indexed, not unique; rumor sync looks up before inserting under its lock.
rumor_table = Table(
    "ship_rumors",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("codename", String, nullable=False),
    Column("codename_key", String, nullable=False, index=True),
    Column("possible_name", String, nullable=True),
    Column("possible_manufacturer", String, nullable=True),
    Column("stage", Enum(DevelopmentStage, native_enum=False), nullable=False),
    Column("source_type", Enum(RumorSourceType, native_enum=False), nullable=False),
    Column("source_url", String, nullable=True),
    Column("source_date", UTCDateTime(), nullable=True),
    Column("first_mentioned", UTCDateTime(), nullable=False),
    Column("last_updated", UTCDateTime(), nullable=False),
    Column("evidence", EvidenceListType(), nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("confirmed_ship_slug", String, ForeignKey("ships.slug"), nullable=True),
    Column("notes", Text, nullable=True),
)

news_table = Table(
    "news",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("title", String, nullable=False),
    Column("category", String, nullable=False, index=True),
    Column("content", Text, nullable=True),
    Column("excerpt", Text, nullable=True),
    Column("source_url", String, nullable=True),
    Column("image_url", String, nullable=True),
    Column("published_at", UTCDateTime(), nullable=False, index=True),
    Column("dedupe_key", String, nullable=True, unique=True),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(CanonicalShip, ship_table)
    mapper_registry.map_imperatively(SourcePreference, ship_preference_table)
    mapper_registry.map_imperatively(ProviderCacheEntry, provider_cache_table)
    mapper_registry.map_imperatively(SyncLock, sync_lock_table)
    mapper_registry.map_imperatively(SyncProgress, sync_progress_table)
    mapper_registry.map_imperatively(AuditLogEntry, audit_log_table)
    mapper_registry.map_imperatively(RumorRecord, rumor_table)
    mapper_registry.map_imperatively(NewsItem, news_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
