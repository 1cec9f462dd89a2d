from __future__ import annotations

from datetime import timedelta

import pytest

from fleetsync.domain.model import (
    STUCK_JOB_MESSAGE,
    DevelopmentStage,
    PreferredSource,
    ProgressStatus,
    Provider,
    RumorRecord,
    SyncProgress,
    is_flight_ready,
)
from tests.helpers.fleet import T0, make_candidate


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("Flight Ready", True),
        ("flight-ready", True),
        ("Released", True),
        ("In Concept", False),
        (None, False),
    ],
)
def test_is_flight_ready(status: object, expected: bool) -> None:
    assert is_flight_ready(status) is expected


def test_preferred_source_maps_to_provider() -> None:
    assert PreferredSource.WIKI.provider is Provider.WIKI
    assert PreferredSource.AUTO.provider is None


def test_absorb_keeps_first_name_and_takes_latest_stage() -> None:
    record = RumorRecord.from_candidate(
        make_candidate("Hull F", possible_name="Hull F", stage=DevelopmentStage.WHITEBOX), now=T0
    )

    grew = record.absorb(
        make_candidate(
            "hull f",
            excerpt="later",
            possible_name="Hull F Mk II",
            possible_manufacturer="MISC",
            stage=DevelopmentStage.GREYBOX,
        ),
        now=T0 + timedelta(days=1),
    )

    assert grew
    assert record.possible_name == "Hull F"
    assert record.possible_manufacturer == "MISC"
    assert record.stage is DevelopmentStage.GREYBOX
    assert record.progress == 60
    assert record.codename_key == "hull f"
    assert record.last_updated == T0 + timedelta(days=1)


def test_absorb_without_stage_keeps_current_stage() -> None:
    record = RumorRecord.from_candidate(
        make_candidate("Hull F", stage=DevelopmentStage.GREYBOX), now=T0
    )

    record.absorb(make_candidate("Hull F", excerpt="another"), now=T0)

    assert record.stage is DevelopmentStage.GREYBOX


def test_cancel_marks_progress_as_stuck() -> None:
    progress = SyncProgress(job_name="ships-sync", started_at=T0, items_synced=3)

    progress.cancel(now=T0 + timedelta(hours=2))

    assert progress.status is ProgressStatus.CANCELLED
    assert progress.error_message == STUCK_JOB_MESSAGE
    assert progress.duration_ms == 2 * 60 * 60 * 1000
    assert progress.items_synced == 3
