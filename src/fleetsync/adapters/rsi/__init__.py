"""RSI comm-link adapter."""

from __future__ import annotations

from .client import RsiMonthlyReportSource
from .schema import CommLinkItem, CommLinkListing

__all__ = ["CommLinkItem", "CommLinkListing", "RsiMonthlyReportSource"]
