"""SQLAlchemy adapter package for fleetsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyAuditLogRepository,
    SqlAlchemyLockRepository,
    SqlAlchemyNewsRepository,
    SqlAlchemyPreferenceRepository,
    SqlAlchemyProgressRepository,
    SqlAlchemyProviderCacheRepository,
    SqlAlchemyRumorRepository,
    SqlAlchemyShipRepository,
)
from .unit_of_work import (
    SqlAlchemyFleetUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyAuditLogRepository",
    "SqlAlchemyFleetUnitOfWork",
    "SqlAlchemyLockRepository",
    "SqlAlchemyNewsRepository",
    "SqlAlchemyPreferenceRepository",
    "SqlAlchemyProgressRepository",
    "SqlAlchemyProviderCacheRepository",
    "SqlAlchemyRumorRepository",
    "SqlAlchemyShipRepository",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
