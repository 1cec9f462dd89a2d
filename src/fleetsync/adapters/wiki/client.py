"""MediaWiki-backed ship source."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from fleetsync.adapters.http_resilience import ResilientClient
from fleetsync.config.providers import DEFAULT_WIKI_API_URL, WikiConfig, get_wiki_config
from fleetsync.domain.errors import ProviderError
from fleetsync.domain.model import Provider
from fleetsync.domain.ports.fetching import ProviderFetchResult, ShipSource

from .schema import CategoryMembersResponse, PageQueryResponse, ParseResponse, WikiApiError
from .translator import is_ship_title, translate_page

if TYPE_CHECKING:
    from collections.abc import Callable, Collection

    from fleetsync.config.http_resilience import ResilienceConfig
    from fleetsync.domain.model import ShipPayload

log = getLogger(__name__)

PROVIDER_NAME = "wiki"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _raise_api_error(error: WikiApiError | None, what: str) -> None:
    if error is not None:
        raise ProviderError(PROVIDER_NAME, f"{what}: {error.code} {error.info}".strip())


@dataclass(slots=True)
class WikiShipSource:
    """Lists the ships category, then reads each page's infobox and hardpoint table.

    The listing is the wiki's catalog, so ``slugs`` is ignored. A failing listing
    raises; a failing page is logged, counted and skipped.
    """

    config: WikiConfig = field(default_factory=get_wiki_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    provider: Provider = field(default=Provider.WIKI, init=False)

    def __call__(
        self,
        *,
        slugs: Collection[str] | None = None,  # noqa: ARG002
    ) -> ProviderFetchResult:
        return asyncio.run(self._fetch_async())

    @property
    def api_url(self) -> str:
        return self.config.resilience.base_url or DEFAULT_WIKI_API_URL

    async def _fetch_async(self) -> ProviderFetchResult:
        result = ProviderFetchResult()
        async with self.client_factory(self.config.resilience) as client:
            titles = await self.list_titles(client)
            log.info(f"Wiki lists {len(titles)} ship pages")
            for title in titles:
                try:
                    payload = await self.fetch_ship(client, title)
                except ProviderError as exc:
                    log.warning(f"Skipping wiki page {title!r}: {exc}")
                    result.errors += 1
                    continue
                if payload is not None:
                    result.payloads.append(payload)
        return result

    async def list_titles(self, client: ResilientClient) -> list[str]:
        """Walk the category listing, bounded by ``max_category_pages``."""

        titles: list[str] = []
        token: str | None = None
        for _ in range(self.config.max_category_pages):
            params: dict[str, str | int] = {
                "action": "query",
                "list": "categorymembers",
                "cmtitle": self.config.category,
                "cmlimit": self.config.category_page_limit,
                "cmnamespace": 0,
                "format": "json",
            }
            if token:
                params["cmcontinue"] = token
            raw = await client.get_json(self.api_url, params=params)
            response = self._validate(CategoryMembersResponse, raw)
            _raise_api_error(response.error, "category listing failed")
            for member in response.query.categorymembers:
                if is_ship_title(member.title):
                    titles.append(member.title)
                else:
                    log.debug(f"Excluded wiki title {member.title!r}")
            token = response.next_token
            if not token:
                break
        else:
            log.warning(
                f"Wiki listing stopped after {self.config.max_category_pages} pages; "
                "some ships may be missing"
            )
        return titles

    async def fetch_ship(self, client: ResilientClient, title: str) -> ShipPayload | None:
        page_raw = await client.get_json(
            self.api_url,
            params={
                "action": "query",
                "titles": title,
                "prop": "revisions|pageimages|info",
                "rvprop": "content",
                "rvslots": "main",
                "piprop": "thumbnail|original",
                "pithumbsize": 800,
                "inprop": "url",
                "format": "json",
            },
        )
        response = self._validate(PageQueryResponse, page_raw)
        _raise_api_error(response.error, f"page query for {title!r} failed")
        page = response.first_page()
        if page is None or page.is_missing:
            log.info(f"Wiki page {title!r} is missing")
            return None

        rendered: str | None = None
        try:
            parse_raw = await client.get_json(
                self.api_url,
                params={"action": "parse", "page": title, "prop": "text", "format": "json"},
            )
            parsed = self._validate(ParseResponse, parse_raw)
        except ProviderError as exc:
            # The infobox alone still yields a usable payload.
            log.warning(f"No rendered hardpoints for {title!r}: {exc}")
        else:
            rendered = parsed.parse.text.html if parsed.parse is not None else None
        return translate_page(page, rendered, page_base_url=self.config.page_base_url)

    @staticmethod
    def _validate[M: (CategoryMembersResponse, PageQueryResponse, ParseResponse)](
        model: type[M], raw: object
    ) -> M:
        try:
            return model.model_validate(raw)
        except PydanticValidationError as exc:
            raise ProviderError(PROVIDER_NAME, f"unexpected response shape: {exc}") from exc


if TYPE_CHECKING:
    _source_check: ShipSource = WikiShipSource()
