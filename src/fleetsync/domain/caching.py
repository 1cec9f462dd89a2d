"""Provider catalog snapshots with a fixed time-to-live."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from logging import getLogger
from typing import TYPE_CHECKING, Any

from fleetsync.config.sync import CacheSettings
from fleetsync.domain.clock import utcnow
from fleetsync.domain.model import ProviderCacheEntry

if TYPE_CHECKING:
    from fleetsync.domain.clock import Clock
    from fleetsync.domain.model import Provider
    from fleetsync.domain.ports import CatalogSource, PageFetcher, UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CollectedPages:
    items: list[dict[str, Any]]
    pages: int
    truncated: bool


async def collect_pages(
    fetch_page: PageFetcher,
    *,
    page_size: int,
    max_pages: int,
) -> CollectedPages:
    """Walk a paginated listing until a short page or the page ceiling.

    Any error raised by ``fetch_page`` propagates; callers must not persist a
    partial result.
    """

    items: list[dict[str, Any]] = []
    pages = 0
    for page in range(1, max_pages + 1):
        batch = await fetch_page(page, page_size)
        pages = page
        items.extend(batch)
        if len(batch) < page_size:
            return CollectedPages(items=items, pages=pages, truncated=False)
    log.warning(f"Stopped after the {max_pages}-page ceiling with {len(items)} items")
    return CollectedPages(items=items, pages=pages, truncated=True)


@dataclass(frozen=True, slots=True)
class CacheRefreshResult:
    provider: Provider
    items: int
    pages: int
    truncated: bool
    expires_at: datetime


class CacheManager:
    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        settings: CacheSettings | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self.settings = settings or CacheSettings()
        self._clock = clock

    def refresh(self, source: CatalogSource) -> CacheRefreshResult:
        """Gather the whole catalog, then swap it in as the provider's only snapshot."""

        collected = asyncio.run(
            collect_pages(
                source.fetch_page,
                page_size=self.settings.page_size,
                max_pages=self.settings.max_pages,
            )
        )
        now = self._clock()
        entry = ProviderCacheEntry(
            provider=source.provider,
            payload=collected.items,
            fetched_at=now,
            expires_at=now + self.settings.ttl,
        )
        with self._uow_factory() as uow:
            uow.repositories.cache.replace(entry)
            uow.commit()
        log.info(
            f"Cached {len(collected.items)} {source.provider} items from {collected.pages} pages"
        )
        return CacheRefreshResult(
            provider=source.provider,
            items=len(collected.items),
            pages=collected.pages,
            truncated=collected.truncated,
            expires_at=entry.expires_at,
        )

    def get(self, provider: Provider) -> list[dict[str, Any]] | None:
        """Return the live snapshot, or ``None`` when the caller must fetch live."""

        with self._uow_factory() as uow:
            entry = uow.repositories.cache.latest(provider)
            if entry is None or not entry.is_live(self._clock()):
                return None
            return list(entry.payload)

    def invalidate(self, provider: Provider | None = None) -> int:
        with self._uow_factory() as uow:
            deleted = uow.repositories.cache.delete(provider)
            uow.commit()
        return deleted

    def sweep_expired(self) -> int:
        with self._uow_factory() as uow:
            deleted = uow.repositories.cache.delete_expired(self._clock())
            uow.commit()
        return deleted
