"""Ports for fetching data from external providers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Collection

    from fleetsync.domain.model import Provider, RumorCandidate, ShipPayload


@dataclass(slots=True)
class ProviderFetchResult:
    """Normalized payloads from one provider plus the per-entity failures it absorbed."""

    payloads: list[ShipPayload] = field(default_factory=list)
    errors: int = 0


@runtime_checkable
class ShipSource(Protocol):
    """Callable port returning normalized ship payloads from one provider.

    ``slugs`` narrows the fetch to known ships for providers that are queried per
    entity; catalog-style providers may ignore it.
    """

    provider: Provider

    def __call__(self, *, slugs: Collection[str] | None = None) -> ProviderFetchResult: ...


type PageFetcher = Callable[[int, int], Awaitable[list[dict[str, Any]]]]


@runtime_checkable
class CatalogSource(Protocol):
    """Full-catalog listing used to fill the provider cache."""

    provider: Provider

    def fetch_page(self, page: int, per_page: int) -> Awaitable[list[dict[str, Any]]]: ...


@runtime_checkable
class RumorSource(Protocol):
    """Async feed yielding rumor candidates; failures surface as ``ProviderError``."""

    name: str

    def collect(self) -> Awaitable[list[RumorCandidate]]: ...


@dataclass(slots=True)
class ProbeReport:
    probe_key: str
    available: bool
    data: dict[str, Any] | None = None
    quality: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


@runtime_checkable
class ModelProbe(Protocol):
    """Diagnostic lookup of one provider model by its key."""

    def __call__(self, probe_key: str) -> ProbeReport: ...


__all__ = [
    "CatalogSource",
    "ModelProbe",
    "PageFetcher",
    "ProbeReport",
    "ProviderFetchResult",
    "RumorSource",
    "ShipSource",
]
