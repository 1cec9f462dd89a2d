"""HTTP client and domain-facing sources for the FleetYards API."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, cast

import httpx
from pydantic import ValidationError as PydanticValidationError

from fleetsync.adapters.http_resilience import ResilientClient
from fleetsync.config.providers import (
    DEFAULT_FLEETYARDS_BASE_URL,
    FleetYardsConfig,
    get_fleetyards_config,
)
from fleetsync.config.sync import CacheSettings
from fleetsync.domain.caching import collect_pages
from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import ProviderError
from fleetsync.domain.model import Provider
from fleetsync.domain.ports.fetching import (
    CatalogSource,
    ModelProbe,
    ProbeReport,
    ProviderFetchResult,
    RumorSource,
    ShipSource,
)

from .schema import ErrorPayload
from .translator import (
    IN_DEVELOPMENT_STATUSES,
    in_development_candidate,
    model_slug,
    quality_score,
    translate_model,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from fleetsync.config.http_resilience import ResilienceConfig
    from fleetsync.domain.caching import CacheManager
    from fleetsync.domain.clock import Clock
    from fleetsync.domain.model import RumorCandidate, ShipPayload

log = getLogger(__name__)

PROVIDER_NAME = "fleetyards"

type JsonObject = dict[str, Any]


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _ensure_model_list(payload: object) -> list[JsonObject]:
    if isinstance(payload, Mapping) and "code" in payload:
        error = ErrorPayload.model_validate(payload)
        raise ProviderError(PROVIDER_NAME, f"API error: {error.message or error.code}")
    if not isinstance(payload, list):
        raise ProviderError(PROVIDER_NAME, "model listing is not an array")
    items = cast(list[object], payload)
    return [cast(JsonObject, item) for item in items if isinstance(item, Mapping)]


def _ensure_object(payload: object, what: str) -> JsonObject:
    if isinstance(payload, Mapping) and "code" in payload and "name" not in payload:
        error = ErrorPayload.model_validate(payload)
        raise ProviderError(PROVIDER_NAME, f"API error for {what}: {error.message or error.code}")
    if not isinstance(payload, Mapping):
        raise ProviderError(PROVIDER_NAME, f"{what} is not an object")
    return dict(cast(Mapping[str, Any], payload))


@dataclass(slots=True)
class FleetYardsClient:
    """Thin async wrapper over the read-only FleetYards endpoints."""

    client: ResilientClient
    base_url: str = DEFAULT_FLEETYARDS_BASE_URL

    def url(self, path: str) -> str:
        return str(httpx.URL(self.base_url).join(path))

    async def list_models(
        self,
        page: int,
        per_page: int,
        *,
        production_status: str | None = None,
    ) -> list[JsonObject]:
        params: dict[str, str | int] = {"page": page, "perPage": per_page}
        if production_status is not None:
            params["productionStatus"] = production_status
        payload = await self.client.get_json(self.url("models"), params=params)
        return _ensure_model_list(payload)

    async def get_model(self, slug: str) -> JsonObject | None:
        """The model document, or ``None`` when FleetYards does not know the slug."""

        try:
            payload = await self.client.get_json(self.url(f"models/{slug}"))
        except ProviderError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                return None
            raise
        return _ensure_object(payload, f"model {slug}")

    async def get_hardpoints(self, slug: str) -> list[JsonObject]:
        try:
            payload = await self.client.get_json(self.url(f"models/{slug}/hardpoints"))
        except ProviderError as exc:
            if exc.status_code == httpx.codes.NOT_FOUND:
                return []
            raise
        if not isinstance(payload, list):
            raise ProviderError(PROVIDER_NAME, f"hardpoints for {slug} are not an array")
        items = cast(list[object], payload)
        return [cast(JsonObject, item) for item in items if isinstance(item, Mapping)]


@dataclass(slots=True)
class _FleetYardsBase:
    config: FleetYardsConfig = field(default_factory=get_fleetyards_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    @property
    def base_url(self) -> str:
        return self.config.resilience.base_url or DEFAULT_FLEETYARDS_BASE_URL

    def _api(self, client: ResilientClient) -> FleetYardsClient:
        return FleetYardsClient(client=client, base_url=self.base_url)


@dataclass(slots=True)
class FleetYardsCatalog(_FleetYardsBase):
    """Page-by-page model listing; feeds the provider cache."""

    provider: Provider = field(default=Provider.FLEETYARDS, init=False)

    async def fetch_page(self, page: int, per_page: int) -> list[JsonObject]:
        async with self.client_factory(self.config.resilience) as client:
            return await self._api(client).list_models(page, per_page)


@dataclass(slots=True)
class FleetYardsShipSource(_FleetYardsBase):
    """Per-ship model and hardpoint lookups.

    Model documents come from the cached catalog when it is live, so a sync only
    pays for the hardpoint calls. Without ``slugs`` every catalog model is fetched.
    """

    cache: CacheManager | None = None
    cache_settings: CacheSettings = field(default_factory=CacheSettings)
    provider: Provider = field(default=Provider.FLEETYARDS, init=False)

    def __call__(self, *, slugs: Collection[str] | None = None) -> ProviderFetchResult:
        catalog = self.cache.get(Provider.FLEETYARDS) if self.cache is not None else None
        if catalog is None:
            log.info("No live FleetYards catalog cached; falling back to live lookups")
        return asyncio.run(self._fetch_async(slugs, catalog))

    async def _fetch_async(
        self,
        slugs: Collection[str] | None,
        catalog: list[JsonObject] | None,
    ) -> ProviderFetchResult:
        result = ProviderFetchResult()
        async with self.client_factory(self.config.resilience) as client:
            api = self._api(client)
            if catalog is None and slugs is None:
                collected = await collect_pages(
                    api.list_models,
                    page_size=self.cache_settings.page_size,
                    max_pages=self.cache_settings.max_pages,
                )
                catalog = collected.items
            index = {model_slug(model): model for model in catalog or ()}
            targets = list(slugs) if slugs is not None else list(index)
            for slug in targets:
                try:
                    payload = await self._fetch_one(api, slug, index.get(slug))
                except ProviderError as exc:
                    log.warning(f"FleetYards lookup for {slug} failed: {exc}")
                    result.errors += 1
                    continue
                if payload is not None:
                    result.payloads.append(payload)
        log.info(f"FleetYards returned {len(result.payloads)} of {len(targets)} ships")
        return result

    async def _fetch_one(
        self,
        api: FleetYardsClient,
        slug: str,
        cached_model: JsonObject | None,
    ) -> ShipPayload | None:
        model = cached_model if cached_model is not None else await api.get_model(slug)
        if model is None:
            log.debug(f"FleetYards has no model {slug}")
            return None
        hardpoints = await api.get_hardpoints(model_slug(model))
        try:
            return translate_model(model, hardpoints, slug=slug)
        except PydanticValidationError as exc:
            raise ProviderError(PROVIDER_NAME, f"unexpected model shape for {slug}: {exc}") from exc


@dataclass(slots=True)
class FleetYardsProbe(_FleetYardsBase):
    """Checks whether a FleetYards slug resolves and how complete its data is."""

    def __call__(self, probe_key: str) -> ProbeReport:
        return asyncio.run(self._probe_async(probe_key))

    async def _probe_async(self, probe_key: str) -> ProbeReport:
        async with self.client_factory(self.config.resilience) as client:
            try:
                payload = await client.get_json(self._api(client).url(f"models/{probe_key}"))
                model = _ensure_object(payload, f"model {probe_key}")
            except ProviderError as exc:
                log.info(f"Probe for {probe_key} failed: {exc}")
                return ProbeReport(probe_key=probe_key, available=False, error=str(exc))
        return ProbeReport(
            probe_key=probe_key,
            available=True,
            data=model,
            quality=quality_score(model),
        )


@dataclass(slots=True)
class FleetYardsRumorSource(_FleetYardsBase):
    """Roadmap rumors: models FleetYards lists as in concept or in production."""

    page_size: int = 100
    clock: Clock = utcnow
    name: str = field(default="fleetyards", init=False)

    async def collect(self) -> list[RumorCandidate]:
        now = self.clock()
        candidates: list[RumorCandidate] = []
        async with self.client_factory(self.config.resilience) as client:
            api = self._api(client)
            for status in IN_DEVELOPMENT_STATUSES:
                models = await api.list_models(1, self.page_size, production_status=status)
                log.debug(f"FleetYards lists {len(models)} models as {status}")
                for model in models:
                    try:
                        candidate = in_development_candidate(
                            model, queried_status=status, api_url=self.base_url, now=now
                        )
                    except PydanticValidationError:
                        log.warning("Skipping FleetYards model without a name")
                        continue
                    if candidate is not None:
                        candidates.append(candidate)
        return candidates


if TYPE_CHECKING:
    _catalog_check: CatalogSource = FleetYardsCatalog()
    _source_check: ShipSource = FleetYardsShipSource()
    _probe_check: ModelProbe = FleetYardsProbe()
    _rumor_check: RumorSource = FleetYardsRumorSource()
