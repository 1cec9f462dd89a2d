from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from fleetsync.domain.clock import utcnow

NEW_SHIPS_CATEGORY = "New Ships"


@dataclass(eq=False, kw_only=True)
class NewsItem:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    title: str
    category: str
    content: str | None = None
    excerpt: str | None = None
    source_url: str | None = None
    image_url: str | None = None
    published_at: datetime = field(default_factory=utcnow)
    dedupe_key: str | None = None
