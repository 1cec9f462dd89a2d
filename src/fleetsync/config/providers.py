"""Provider endpoints and HTTP resilience settings.

None of the upstream catalogs need credentials; only the base URLs may be
overridden, which keeps staging mirrors and recorded fixtures easy to point at.
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, optional_env
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_WIKI_API_URL = "https://starcitizen.tools/api.php"
DEFAULT_WIKI_PAGE_URL = "https://starcitizen.tools/"
DEFAULT_FLEETYARDS_BASE_URL = "https://api.fleetyards.net/v1/"
DEFAULT_RSI_BASE_URL = "https://robertsspaceindustries.com/"
DEFAULT_SCUNPACKED_SHIPS_URL = (
    "https://raw.githubusercontent.com/StarCitizenWiki/scunpacked/main/api/ships.json"
)


@dataclass(frozen=True, slots=True)
class WikiConfig:
    resilience: ResilienceConfig
    page_base_url: str = DEFAULT_WIKI_PAGE_URL
    category: str = "Category:Ships"
    category_page_limit: int = 500
    max_category_pages: int = 10


@dataclass(frozen=True, slots=True)
class FleetYardsConfig:
    resilience: ResilienceConfig


@dataclass(frozen=True, slots=True)
class RsiConfig:
    resilience: ResilienceConfig
    channel: str = "transmission"
    series: str = "monthly-report"
    page_size: int = 12


@dataclass(frozen=True, slots=True)
class ScUnpackedConfig:
    resilience: ResilienceConfig
    ships_url: str = DEFAULT_SCUNPACKED_SHIPS_URL


def get_wiki_config() -> WikiConfig:
    resilience = ResilienceConfig(
        name="wiki",
        base_url=optional_env("FLEETSYNC_WIKI_API_URL", DEFAULT_WIKI_API_URL),
        timeout_seconds=env_float("FLEETSYNC_HTTP_TIMEOUT", 30.0),
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        retry=RetryPolicy(total=3),
        cache=CacheConfig(enabled=True, backend="memory"),
    )
    page_base = optional_env("FLEETSYNC_WIKI_PAGE_URL", DEFAULT_WIKI_PAGE_URL)
    return WikiConfig(resilience=resilience, page_base_url=page_base or DEFAULT_WIKI_PAGE_URL)


def get_fleetyards_config() -> FleetYardsConfig:
    resilience = ResilienceConfig(
        name="fleetyards",
        base_url=optional_env("FLEETSYNC_FLEETYARDS_URL", DEFAULT_FLEETYARDS_BASE_URL),
        timeout_seconds=env_float("FLEETSYNC_HTTP_TIMEOUT", 30.0),
        ratelimit=RateLimit(max_calls=5, per_seconds=1.0),
        retry=RetryPolicy(total=3),
        cache=None,
    )
    return FleetYardsConfig(resilience=resilience)


def get_rsi_config() -> RsiConfig:
    resilience = ResilienceConfig(
        name="rsi",
        base_url=optional_env("FLEETSYNC_RSI_URL", DEFAULT_RSI_BASE_URL),
        timeout_seconds=env_float("FLEETSYNC_HTTP_TIMEOUT", 30.0),
        ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
        cache=None,
    )
    return RsiConfig(resilience=resilience)


def get_scunpacked_config() -> ScUnpackedConfig:
    resilience = ResilienceConfig(
        name="scunpacked",
        timeout_seconds=env_float("FLEETSYNC_HTTP_TIMEOUT", 60.0),
        cache=None,
    )
    ships_url = optional_env("FLEETSYNC_SCUNPACKED_URL", DEFAULT_SCUNPACKED_SHIPS_URL)
    return ScUnpackedConfig(
        resilience=resilience, ships_url=ships_url or DEFAULT_SCUNPACKED_SHIPS_URL
    )
