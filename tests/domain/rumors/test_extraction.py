from __future__ import annotations

import pytest

from fleetsync.domain.model import DevelopmentStage
from fleetsync.domain.rumors import (
    classify_stage,
    extract_candidates,
    named_entities,
    placeholder_codenames,
)
from tests.helpers.fleet import T0


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Work on the 3rd unannounced vehicle continued", ["Unannounced Vehicle #3"]),
        ("unannounced vehicle #2 entered greybox", ["Unannounced Vehicle #2"]),
        ("The second unannounced ship is progressing", ["Unannounced Vehicle #2"]),
        ("a new unannounced ship appeared", ["Unannounced Vehicle #Unknown"]),
        ("nothing to see here", []),
    ],
)
def test_placeholder_codenames(text: str, expected: list[str]) -> None:
    assert placeholder_codenames(text) == expected


def test_same_number_mentioned_twice_yields_one_codename() -> None:
    text = "The 1st unannounced vehicle (unannounced vehicle 1) moved on"

    assert placeholder_codenames(text) == ["Unannounced Vehicle #1"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("still concepting", DevelopmentStage.CONCEPTING),
        ("in early concept", DevelopmentStage.EARLY_CONCEPT),
        ("currently in whitebox", DevelopmentStage.WHITEBOX),
        ("moved from whitebox to greybox", DevelopmentStage.GREYBOX),
        ("greybox done, now in final art review", DevelopmentStage.FINAL_REVIEW),
        ("polish pass", None),
    ],
)
def test_most_specific_stage_wins(text: str, expected: DevelopmentStage | None) -> None:
    assert classify_stage(text) == expected


def test_named_entities_before_stage_terms() -> None:
    assert named_entities("The Starlancer is in greybox while the team rests") == ["Starlancer"]
    assert named_entities("Polaris whitebox wrapped up") == ["Polaris"]


def test_named_entities_reject_generic_words() -> None:
    assert named_entities("Work is currently in whitebox") == []
    assert named_entities("Unannounced Vehicle in whitebox") == []


def test_extract_candidates_builds_evidence() -> None:
    candidates = extract_candidates(
        title="Monthly Report: March 2954",
        excerpt="Work continued on the 3rd unannounced vehicle, which is currently in whitebox.",
        url="https://rsi.example/comm-link/transmission/1",
        published_at=T0,
    )

    (candidate,) = candidates
    assert candidate.codename == "Unannounced Vehicle #3"
    assert candidate.stage is DevelopmentStage.WHITEBOX
    assert candidate.evidence.url == "https://rsi.example/comm-link/transmission/1"
    assert candidate.evidence.date == T0
    assert candidate.possible_name is None


def test_extract_candidates_truncates_excerpt() -> None:
    (candidate,) = extract_candidates(
        title="Monthly Report",
        excerpt="The 2nd unannounced vehicle " + "x" * 600,
        url=None,
        published_at=None,
        excerpt_length=50,
    )

    assert len(candidate.evidence.excerpt) == 50
    assert candidate.evidence.source == "Monthly Report"
