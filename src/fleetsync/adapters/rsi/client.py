"""Monthly-report rumor feed from the RSI comm-link hub."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError as PydanticValidationError

from fleetsync.adapters.http_resilience import ResilientClient
from fleetsync.config.providers import DEFAULT_RSI_BASE_URL, RsiConfig, get_rsi_config
from fleetsync.config.sync import RumorConfig
from fleetsync.domain.clock import ensure_utc, utcnow
from fleetsync.domain.errors import ProviderError
from fleetsync.domain.model import RumorSourceType
from fleetsync.domain.ports.fetching import RumorSource
from fleetsync.domain.rumors import extract_candidates

from .schema import CommLinkItem, CommLinkListing

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.config.http_resilience import ResilienceConfig
    from fleetsync.domain.clock import Clock
    from fleetsync.domain.model import RumorCandidate

log = getLogger(__name__)

PROVIDER_NAME = "rsi"
COMMLINK_ENDPOINT = "api/hub/getCommlinkItems"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class RsiMonthlyReportSource:
    config: RsiConfig = field(default_factory=get_rsi_config)
    rumor_config: RumorConfig = field(default_factory=RumorConfig)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    clock: Clock = utcnow
    name: str = field(default="rsi", init=False)

    @property
    def base_url(self) -> str:
        return self.config.resilience.base_url or DEFAULT_RSI_BASE_URL

    def article_url(self, item: CommLinkItem) -> str:
        return str(httpx.URL(self.base_url).join(item.url)) if item.url else self.base_url

    async def fetch_reports(self) -> list[CommLinkItem]:
        body = {
            "channel": self.config.channel,
            "series": self.config.series,
            "sort": "publish_new",
            "page": 1,
            "pagesize": self.config.page_size,
        }
        async with self.client_factory(self.config.resilience) as client:
            payload = await client.post_json(
                str(httpx.URL(self.base_url).join(COMMLINK_ENDPOINT)), json=body
            )
        try:
            listing = CommLinkListing.model_validate(payload)
        except PydanticValidationError as exc:
            raise ProviderError(PROVIDER_NAME, f"unexpected listing shape: {exc}") from exc
        return listing.data[: self.rumor_config.monthly_reports]

    async def collect(self) -> list[RumorCandidate]:
        reports = await self.fetch_reports()
        log.info(f"Inspecting {len(reports)} monthly reports")
        candidates: list[RumorCandidate] = []
        for report in reports:
            published = ensure_utc(report.publish_start) if report.publish_start else self.clock()
            candidates.extend(
                extract_candidates(
                    title=report.title,
                    excerpt=report.excerpt,
                    url=self.article_url(report),
                    published_at=published,
                    source_type=RumorSourceType.MONTHLY_REPORT,
                    excerpt_length=self.rumor_config.excerpt_length,
                )
            )
        return candidates


if TYPE_CHECKING:
    _rumor_check: RumorSource = RsiMonthlyReportSource()
