"""Rumor records for vehicles that are not yet part of the canonical catalog."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, cast

from fleetsync.domain.clock import ensure_utc, utcnow

from .enums import DevelopmentStage, RumorSourceType

DEFAULT_EVIDENCE_CAP = 10


def codename_key(codename: str) -> str:
    """Merge identity of a rumor: its codename, case-folded and whitespace-normalized."""

    return " ".join(codename.split()).casefold()


@dataclass(frozen=True, slots=True)
class EvidenceItem:
    source: str
    excerpt: str
    date: datetime | None = None
    url: str | None = None

    @property
    def identity(self) -> tuple[str, str]:
        return (self.source, self.excerpt)

    def to_document(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "date": ensure_utc(self.date).isoformat() if self.date else None,
            "excerpt": self.excerpt,
            "url": self.url,
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> EvidenceItem:
        raw_date = document.get("date")
        return cls(
            source=str(document.get("source") or ""),
            excerpt=str(document.get("excerpt") or ""),
            date=(
                ensure_utc(datetime.fromisoformat(raw_date)) if isinstance(raw_date, str) else None
            ),
            url=cast(str | None, document.get("url")),
        )


@dataclass(frozen=True, slots=True)
class RumorCandidate:
    """A single observation produced by one feed, before filtering and merge."""

    codename: str
    evidence: EvidenceItem
    source_type: RumorSourceType
    stage: DevelopmentStage | None = None
    possible_name: str | None = None
    possible_manufacturer: str | None = None
    source_url: str | None = None
    source_date: datetime | None = None
    notes: str | None = None

    @property
    def key(self) -> str:
        return codename_key(self.codename)

    @property
    def display_name(self) -> str:
        return self.possible_name or self.codename


@dataclass(eq=False, kw_only=True)
class RumorRecord:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    codename: str
    codename_key: str = ""
    possible_name: str | None = None
    possible_manufacturer: str | None = None
    stage: DevelopmentStage = DevelopmentStage.CONCEPTING
    source_type: RumorSourceType = RumorSourceType.MONTHLY_REPORT
    source_url: str | None = None
    source_date: datetime | None = None
    first_mentioned: datetime = field(default_factory=utcnow)
    last_updated: datetime = field(default_factory=utcnow)
    evidence: list[EvidenceItem] = field(default_factory=list)
    is_active: bool = True
    confirmed_ship_slug: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.codename_key:
            self.codename_key = codename_key(self.codename)

    @property
    def progress(self) -> int:
        return self.stage.progress

    @classmethod
    def from_candidate(
        cls,
        candidate: RumorCandidate,
        *,
        now: datetime,
        evidence_cap: int = DEFAULT_EVIDENCE_CAP,
    ) -> RumorRecord:
        record = cls(
            codename=candidate.codename,
            possible_name=candidate.possible_name,
            possible_manufacturer=candidate.possible_manufacturer,
            stage=candidate.stage or DevelopmentStage.CONCEPTING,
            source_type=candidate.source_type,
            source_url=candidate.source_url,
            source_date=candidate.source_date,
            first_mentioned=now,
            last_updated=now,
            notes=candidate.notes,
        )
        record.evidence = [candidate.evidence][-evidence_cap:]
        return record

    def absorb(
        self,
        candidate: RumorCandidate,
        *,
        now: datetime,
        evidence_cap: int = DEFAULT_EVIDENCE_CAP,
    ) -> bool:
        """Fold a newer sighting into this record.

        Scalars are last-write-wins; evidence is appended (skipping exact repeats of
        the same source and excerpt) and truncated to the newest ``evidence_cap``.
        Returns whether the evidence list grew.
        """

        known = {item.identity for item in self.evidence}
        grew = candidate.evidence.identity not in known
        if grew:
            self.evidence = [*self.evidence, candidate.evidence][-evidence_cap:]
        if candidate.stage is not None:
            self.stage = candidate.stage
        if candidate.notes:
            self.notes = candidate.notes
        if candidate.possible_name and not self.possible_name:
            self.possible_name = candidate.possible_name
        if candidate.possible_manufacturer and not self.possible_manufacturer:
            self.possible_manufacturer = candidate.possible_manufacturer
        if candidate.source_url:
            self.source_url = candidate.source_url
        if candidate.source_date:
            self.source_date = candidate.source_date
        self.last_updated = now
        return grew

    def confirm(self, ship_slug: str, *, now: datetime) -> None:
        self.confirmed_ship_slug = ship_slug
        self.is_active = False
        self.last_updated = now
