"""Domain model for ships, rumors and the job bookkeeping around them."""

from __future__ import annotations

from .enums import (
    DevelopmentStage,
    PreferredSource,
    ProgressStatus,
    Provider,
    ReconcileAction,
    RumorSourceType,
)
from .jobs import STUCK_JOB_MESSAGE, AuditLogEntry, ProviderCacheEntry, SyncLock, SyncProgress
from .news import NEW_SHIPS_CATEGORY, NewsItem
from .rumor import EvidenceItem, RumorCandidate, RumorRecord, codename_key
from .ship import (
    FLIGHT_READY_MARKERS,
    MERGEABLE_FIELDS,
    CanonicalShip,
    ChangeFlags,
    Provenance,
    ShipPayload,
    SourcePreference,
    is_flight_ready,
)

__all__ = [
    "FLIGHT_READY_MARKERS",
    "MERGEABLE_FIELDS",
    "NEW_SHIPS_CATEGORY",
    "STUCK_JOB_MESSAGE",
    "AuditLogEntry",
    "CanonicalShip",
    "ChangeFlags",
    "DevelopmentStage",
    "EvidenceItem",
    "NewsItem",
    "PreferredSource",
    "ProgressStatus",
    "Provenance",
    "Provider",
    "ProviderCacheEntry",
    "ReconcileAction",
    "RumorCandidate",
    "RumorRecord",
    "RumorSourceType",
    "ShipPayload",
    "SourcePreference",
    "SyncLock",
    "SyncProgress",
    "codename_key",
    "is_flight_ready",
]
