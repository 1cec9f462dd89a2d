"""Canonical ship records and the per-provider payloads they are merged from."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final, cast

from fleetsync.domain.clock import ensure_utc, utcnow

from .enums import PreferredSource, Provider

MERGEABLE_FIELDS: Final[tuple[str, ...]] = (
    "name",
    "manufacturer",
    "role",
    "size",
    "crew_min",
    "crew_max",
    "cargo_scu",
    "length_m",
    "beam_m",
    "height_m",
    "scm_speed",
    "max_speed",
    "armament",
    "systems",
    "prices",
    "patch",
    "production_status",
)

FLIGHT_READY_MARKERS: Final[tuple[str, ...]] = ("flight ready", "released", "flyable")


def is_flight_ready(production_status: object) -> bool:
    if not isinstance(production_status, str):
        return False
    lowered = production_status.lower().replace("-", " ").replace("_", " ")
    return any(marker in lowered for marker in FLIGHT_READY_MARKERS)


@dataclass(frozen=True, slots=True)
class ShipPayload:
    """One provider's normalized, unmerged view of a ship."""

    provider: Provider
    slug: str
    name: str
    specs: Mapping[str, Any] = field(default_factory=dict)
    image_url: str | None = None
    model_url: str | None = None
    source_url: str | None = None

    def value(self, field_name: str) -> object:
        if field_name == "name":
            return self.name
        return self.specs.get(field_name)

    def to_raw(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "specs": dict(self.specs),
            "image_url": self.image_url,
            "model_url": self.model_url,
            "source_url": self.source_url,
        }

    @classmethod
    def from_raw(cls, provider: Provider, slug: str, raw: Mapping[str, Any]) -> ShipPayload:
        specs = raw.get("specs")
        return cls(
            provider=provider,
            slug=slug,
            name=str(raw.get("name") or slug),
            specs=dict(cast(Mapping[str, Any], specs)) if isinstance(specs, Mapping) else {},
            image_url=cast(str | None, raw.get("image_url")),
            model_url=cast(str | None, raw.get("model_url")),
            source_url=cast(str | None, raw.get("source_url")),
        )


@dataclass(frozen=True, slots=True)
class ChangeFlags:
    data: bool = False
    image: bool = False
    model: bool = False

    @property
    def any(self) -> bool:
        return self.data or self.image or self.model


@dataclass(frozen=True, slots=True)
class Provenance:
    """Who produced the current canonical state, and what that write changed."""

    sources: tuple[str, ...]
    recorded_at: datetime
    source_url: str | None = None
    changes: ChangeFlags = field(default_factory=ChangeFlags)

    def to_document(self) -> dict[str, Any]:
        return {
            "sources": list(self.sources),
            "url": self.source_url,
            "ts": ensure_utc(self.recorded_at).isoformat(),
            "changes": {
                "data": self.changes.data,
                "image": self.changes.image,
                "model": self.changes.model,
            },
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> Provenance:
        changes = cast(Mapping[str, Any], document.get("changes") or {})
        raw_ts = document.get("ts")
        recorded_at = datetime.fromisoformat(raw_ts) if isinstance(raw_ts, str) else utcnow()
        return cls(
            sources=tuple(str(item) for item in document.get("sources") or ()),
            recorded_at=ensure_utc(recorded_at),
            source_url=cast(str | None, document.get("url")),
            changes=ChangeFlags(
                data=bool(changes.get("data")),
                image=bool(changes.get("image")),
                model=bool(changes.get("model")),
            ),
        )


@dataclass(eq=False, kw_only=True)
class CanonicalShip:
    slug: str
    name: str
    specs: dict[str, Any] = field(default_factory=dict)
    provenance: Provenance | None = None
    content_hash: str = ""
    image_url: str | None = None
    model_url: str | None = None
    flight_ready_since: datetime | None = None
    raw_wiki: dict[str, Any] | None = None
    raw_fleetyards: dict[str, Any] | None = None
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def production_status(self) -> str | None:
        value = self.specs.get("production_status")
        return value if isinstance(value, str) else None

    @property
    def manufacturer(self) -> str | None:
        value = self.specs.get("manufacturer")
        return value if isinstance(value, str) else None

    def raw_payload(self, provider: Provider) -> dict[str, Any] | None:
        if provider is Provider.WIKI:
            return self.raw_wiki
        return self.raw_fleetyards

    def set_raw_payload(self, provider: Provider, raw: dict[str, Any] | None) -> bool:
        """Store a provider's raw payload; returns whether anything changed."""

        if self.raw_payload(provider) == raw:
            return False
        if provider is Provider.WIKI:
            self.raw_wiki = raw
        else:
            self.raw_fleetyards = raw
        return True

    def stored_payloads(self) -> dict[Provider, ShipPayload]:
        payloads: dict[Provider, ShipPayload] = {}
        for provider in Provider:
            raw = self.raw_payload(provider)
            if raw is not None:
                payloads[provider] = ShipPayload.from_raw(provider, self.slug, raw)
        return payloads


@dataclass(eq=False, kw_only=True)
class SourcePreference:
    slug: str
    preferred_source: PreferredSource = PreferredSource.AUTO
    reason: str | None = None
    clear_cache: bool = False
    set_by: str | None = None
    set_at: datetime = field(default_factory=utcnow)
