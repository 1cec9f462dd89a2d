"""Domain ports: the seams adapters plug into."""

from __future__ import annotations

from collections.abc import Callable

from .fetching import (
    CatalogSource,
    ModelProbe,
    PageFetcher,
    ProbeReport,
    ProviderFetchResult,
    RumorSource,
    ShipSource,
)
from .persistence import (
    AuditLogRepository,
    KnownShips,
    LockRepository,
    NewsRepository,
    PreferenceRepository,
    ProgressRepository,
    ProviderCacheRepository,
    RawPruneResult,
    Repository,
    RumorRepository,
    ShipRepository,
)
from .unit_of_work import FleetRepositories, FleetUnitOfWork, RepositoryCollection, UnitOfWork

type UnitOfWorkFactory = Callable[[], FleetUnitOfWork]

__all__ = [
    "AuditLogRepository",
    "CatalogSource",
    "FleetRepositories",
    "FleetUnitOfWork",
    "KnownShips",
    "LockRepository",
    "ModelProbe",
    "NewsRepository",
    "PageFetcher",
    "PreferenceRepository",
    "ProbeReport",
    "ProgressRepository",
    "ProviderCacheRepository",
    "ProviderFetchResult",
    "RawPruneResult",
    "Repository",
    "RepositoryCollection",
    "RumorRepository",
    "RumorSource",
    "ShipRepository",
    "ShipSource",
    "UnitOfWork",
    "UnitOfWorkFactory",
]
