"""Public interface for the wiki adapter."""

from __future__ import annotations

from .client import WikiShipSource
from .schema import PageQueryResponse, WikiPage
from .translator import (
    clean_value,
    is_ship_title,
    parse_hardpoints_html,
    parse_wikitext,
    translate_page,
)

__all__ = [
    "PageQueryResponse",
    "WikiPage",
    "WikiShipSource",
    "clean_value",
    "is_ship_title",
    "parse_hardpoints_html",
    "parse_wikitext",
    "translate_page",
]
