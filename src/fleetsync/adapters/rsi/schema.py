"""Pydantic models for the RSI comm-link hub listing."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RsiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CommLinkItem(RsiBaseModel):
    title: str = ""
    excerpt: str = ""
    url: str = ""
    publish_start: datetime | None = None

    @field_validator("title", "excerpt", "url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("publish_start", mode="before")
    @classmethod
    def _parse_publish_start(cls, value: object) -> object:
        # The hub sometimes sends epoch seconds and sometimes an ISO string.
        if isinstance(value, (int, float)):
            return datetime.fromtimestamp(value, tz=UTC)
        if value == "":
            return None
        return value


class CommLinkListing(RsiBaseModel):
    success: int | bool | None = None
    data: list[CommLinkItem] = Field(default_factory=list)
    msg: str | None = None
