"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class Provider(StrEnum):
    WIKI = "wiki"
    FLEETYARDS = "fleetyards"


class PreferredSource(StrEnum):
    WIKI = "wiki"
    FLEETYARDS = "fleetyards"
    AUTO = "auto"

    @property
    def provider(self) -> Provider | None:
        """The provider this preference pins, or ``None`` for automatic merging."""

        if self is PreferredSource.AUTO:
            return None
        return Provider(self.value)


class ProgressStatus(StrEnum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class DevelopmentStage(StrEnum):
    CONCEPTING = "concepting"
    EARLY_CONCEPT = "early_concept"
    WHITEBOX = "whitebox"
    GREYBOX = "greybox"
    FINAL_REVIEW = "final_review"

    @property
    def progress(self) -> int:
        return _STAGE_PROGRESS[self]


_STAGE_PROGRESS: dict[DevelopmentStage, int] = {
    DevelopmentStage.CONCEPTING: 10,
    DevelopmentStage.EARLY_CONCEPT: 15,
    DevelopmentStage.WHITEBOX: 35,
    DevelopmentStage.GREYBOX: 60,
    DevelopmentStage.FINAL_REVIEW: 85,
}


class RumorSourceType(StrEnum):
    MONTHLY_REPORT = "monthly_report"
    ROADMAP = "roadmap"
    DATAMINE = "datamine"


class ReconcileAction(StrEnum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"
