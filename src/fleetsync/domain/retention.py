"""Scheduled pruning that keeps the store from growing without bound."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from fleetsync.config.sync import RetentionConfig
from fleetsync.domain.clock import utcnow
from fleetsync.domain.errors import StoreError

if TYPE_CHECKING:
    from collections.abc import Callable

    from fleetsync.domain.clock import Clock
    from fleetsync.domain.ports import RawPruneResult, UnitOfWorkFactory

log = getLogger(__name__)


@dataclass(slots=True)
class StepOutcome:
    name: str
    ok: bool
    affected: int = 0
    error: str | None = None


@dataclass(slots=True)
class RetentionReport:
    steps: list[StepOutcome] = field(default_factory=list)
    cleaned: int = 0
    kept: int = 0

    @property
    def success(self) -> bool:
        return all(step.ok for step in self.steps)

    @property
    def affected(self) -> int:
        return sum(step.affected for step in self.steps)

    def step(self, name: str) -> StepOutcome | None:
        return next((step for step in self.steps if step.name == name), None)

    def as_counters(self) -> dict[str, int]:
        return {step.name: step.affected for step in self.steps}


@dataclass(slots=True)
class NewsPruneResult:
    deleted_over_limit: int = 0
    deleted_aged: int = 0

    @property
    def deleted(self) -> int:
        return self.deleted_over_limit + self.deleted_aged


class RetentionManager:
    """Runs the independent cleanup steps; one failing step never stops the others."""

    def __init__(
        self,
        unit_of_work_factory: UnitOfWorkFactory,
        config: RetentionConfig | None = None,
        *,
        clock: Clock = utcnow,
    ) -> None:
        self._uow_factory = unit_of_work_factory
        self.config = config or RetentionConfig()
        self._clock = clock

    def run(self) -> RetentionReport:
        report = RetentionReport()

        prune = self._run_step(report, "raw_payloads", self.prune_raw_payloads)
        if prune is not None:
            report.cleaned, report.kept = prune.cleaned, prune.kept
        self._run_step(report, "expired_locks", self.sweep_locks)
        self._run_step(report, "stuck_jobs", self.recover_stuck_jobs)
        self._run_step(report, "job_history", self.prune_history)
        self._run_step(report, "expired_cache", self.sweep_expired_cache)

        log.info(
            f"Retention run finished: success={report.success}, affected={report.affected}, "
            f"steps={report.as_counters()}"
        )
        return report

    def prune_raw_payloads(self) -> RawPruneResult:
        """Null raw provider payloads on ships not updated within the window.

        When no ship at all was updated inside the window, every ship is eligible.
        """

        cutoff = self._clock() - self.config.raw_payload_window
        with self._uow_factory() as uow:
            result = uow.repositories.ships.prune_raw_payloads(cutoff)
            uow.commit()
        return result

    def sweep_locks(self) -> int:
        with self._uow_factory() as uow:
            deleted = uow.repositories.locks.delete_expired(self._clock())
            uow.commit()
        return deleted

    def recover_stuck_jobs(self) -> int:
        now = self._clock()
        cutoff = now - self.config.stuck_job_timeout
        with self._uow_factory() as uow:
            stuck = uow.repositories.progress.list_running_before(cutoff)
            for progress in stuck:
                log.warning(
                    f"Cancelling stuck {progress.job_name} run started at {progress.started_at}"
                )
                progress.cancel(now=now)
            uow.commit()
        return len(stuck)

    def prune_history(self) -> int:
        cutoff = self._clock() - self.config.history_retention
        with self._uow_factory() as uow:
            deleted = uow.repositories.progress.delete_started_before(cutoff)
            uow.commit()
        return deleted

    def sweep_expired_cache(self) -> int:
        with self._uow_factory() as uow:
            deleted = uow.repositories.cache.delete_expired(self._clock())
            uow.commit()
        return deleted

    def prune_news(self) -> NewsPruneResult:
        """Trim capped categories to their newest items, then drop aged news elsewhere."""

        result = NewsPruneResult()
        cutoff = self._clock() - self.config.news_retention
        with self._uow_factory() as uow:
            news = uow.repositories.news
            for category, limit in self.config.news_keep_latest.items():
                keep = news.latest_ids(category, limit)
                result.deleted_over_limit += news.delete_category_except(category, keep)
            result.deleted_aged = news.delete_published_before(
                cutoff, exclude_categories=self.config.news_age_exempt
            )
            uow.commit()
        return result

    def _run_step[T](
        self, report: RetentionReport, name: str, step: Callable[[], T]
    ) -> T | None:
        try:
            value = step()
        except StoreError as exc:
            log.exception(f"Retention step {name} failed")
            report.steps.append(StepOutcome(name=name, ok=False, error=str(exc)))
            return None
        affected = value if isinstance(value, int) else getattr(value, "cleaned", 0)
        report.steps.append(StepOutcome(name=name, ok=True, affected=affected))
        return value
