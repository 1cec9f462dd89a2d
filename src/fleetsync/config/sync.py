"""Synchronisation, retention and locking defaults for the jobs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import timedelta
from typing import cast

from .env import env_json
from .errors import ConfigurationError

PRECEDENCE_ENV = "FLEETSYNC_PRECEDENCE"

DEFAULT_PROVIDER_ORDER: tuple[str, ...] = ("wiki", "fleetyards")
DEFAULT_FIELD_PRECEDENCE: Mapping[str, tuple[str, ...]] = {
    "armament": ("fleetyards", "wiki"),
    "systems": ("fleetyards", "wiki"),
}

JOB_SHIPS_SYNC = "ships-sync"
JOB_CACHE_REFRESH = "cache-refresh"
JOB_RUMOR_SYNC = "rumor-sync"
JOB_CLEANUP = "cleanup"
JOB_NEWS_CLEANUP = "cleanup-old-news"
JOB_FLIGHT_READY_NEWS = "flight-ready-news"
JOB_SHIP_OVERRIDE = "ship-data-override"


@dataclass(frozen=True, slots=True)
class PrecedenceConfig:
    """Ordered provider preference, per canonical field with a catch-all default."""

    default: tuple[str, ...] = DEFAULT_PROVIDER_ORDER
    fields: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_FIELD_PRECEDENCE)
    )

    def order_for(self, field_name: str) -> tuple[str, ...]:
        return self.fields.get(field_name, self.default)

    @classmethod
    def from_mapping(cls, document: object) -> PrecedenceConfig:
        if not isinstance(document, Mapping):
            raise ConfigurationError("Precedence configuration must be a JSON object")
        mapping = cast(Mapping[str, object], document)
        default = _as_order(mapping.get("default", list(DEFAULT_PROVIDER_ORDER)), "default")
        raw_fields = mapping.get("fields", {})
        if not isinstance(raw_fields, Mapping):
            raise ConfigurationError("Precedence 'fields' must be a JSON object")
        fields = {
            str(name): _as_order(order, str(name))
            for name, order in cast(Mapping[object, object], raw_fields).items()
        }
        return cls(default=default, fields=fields)


def _as_order(value: object, label: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigurationError(f"Precedence for {label!r} must be a list of provider names")
    return tuple(cast(list[str], value))


@dataclass(frozen=True, slots=True)
class RetentionConfig:
    raw_payload_window: timedelta = timedelta(days=30)
    stuck_job_timeout: timedelta = timedelta(hours=1)
    history_retention: timedelta = timedelta(days=7)
    news_retention: timedelta = timedelta(days=30)
    news_keep_latest: Mapping[str, int] = field(
        default_factory=lambda: {"Server Status": 5, "New Ships": 5}
    )
    news_age_exempt: frozenset[str] = field(
        default_factory=lambda: frozenset({"Server Status", "New Ships"})
    )
    flight_ready_lookback: timedelta = timedelta(days=7)


@dataclass(frozen=True, slots=True)
class LockConfig:
    default_ttl: timedelta = timedelta(minutes=10)
    ttls: Mapping[str, timedelta] = field(
        default_factory=lambda: {
            JOB_SHIPS_SYNC: timedelta(minutes=10),
            JOB_CLEANUP: timedelta(minutes=30),
            JOB_RUMOR_SYNC: timedelta(minutes=10),
            JOB_CACHE_REFRESH: timedelta(minutes=10),
        }
    )

    def ttl_for(self, job_name: str) -> timedelta:
        return self.ttls.get(job_name, self.default_ttl)


@dataclass(frozen=True, slots=True)
class CacheSettings:
    ttl: timedelta = timedelta(hours=24)
    page_size: int = 100
    max_pages: int = 20


@dataclass(frozen=True, slots=True)
class RumorConfig:
    evidence_cap: int = 10
    excerpt_length: int = 500
    monthly_reports: int = 6


@dataclass(frozen=True, slots=True)
class SyncConfig:
    precedence: PrecedenceConfig = field(default_factory=PrecedenceConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    locks: LockConfig = field(default_factory=LockConfig)
    cache: CacheSettings = field(default_factory=CacheSettings)
    rumors: RumorConfig = field(default_factory=RumorConfig)


def get_sync_config() -> SyncConfig:
    document = env_json(PRECEDENCE_ENV)
    if document is None:
        return SyncConfig()
    return SyncConfig(precedence=PrecedenceConfig.from_mapping(document))
