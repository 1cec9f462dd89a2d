"""Rule-based extraction of rumor candidates from free text.

Three rule sets run over each text:

- numbered placeholders ("3rd unannounced vehicle", "unannounced vehicle #2",
  "second unannounced ship") become ``Unannounced Vehicle #N``
- capitalized names directly followed by a stage term ("Starlancer is in greybox")
- stage terms, checked most specific first so "final review" wins over weaker terms
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Final

from fleetsync.domain.model import (
    DevelopmentStage,
    EvidenceItem,
    RumorCandidate,
    RumorSourceType,
)

ORDINAL_WORDS: Final[dict[str, int]] = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
}

PLACEHOLDER_TEMPLATE = "Unannounced Vehicle #{}"
UNKNOWN_PLACEHOLDER = PLACEHOLDER_TEMPLATE.format("Unknown")

NUMBERED_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(r"(\d+)\s*(?:st|nd|rd|th)?\s*unannounced\s*vehicle", re.IGNORECASE),
    re.compile(r"unannounced\s*vehicle\s*(?:#?\s*)?(\d+)", re.IGNORECASE),
    re.compile(
        r"\b(first|second|third|fourth|fifth)\s*unannounced\s*(?:vehicle|ship)",
        re.IGNORECASE,
    ),
)
GENERIC_PATTERN: Final = re.compile(r"new\s+unannounced\s+(?:ship|vehicle)", re.IGNORECASE)

STAGE_RULES: Final[tuple[tuple[re.Pattern[str], DevelopmentStage], ...]] = (
    (re.compile(r"final\s*(?:art\s*)?review", re.IGNORECASE), DevelopmentStage.FINAL_REVIEW),
    (re.compile(r"greybox", re.IGNORECASE), DevelopmentStage.GREYBOX),
    (re.compile(r"whitebox", re.IGNORECASE), DevelopmentStage.WHITEBOX),
    (re.compile(r"early\s*concept", re.IGNORECASE), DevelopmentStage.EARLY_CONCEPT),
    (re.compile(r"concepting", re.IGNORECASE), DevelopmentStage.CONCEPTING),
)

# Names are case-sensitive; only the stage term ignores case.
NAMED_PATTERNS: Final[tuple[re.Pattern[str], ...]] = (
    re.compile(
        r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\s+(?:is\s+)?(?:in\s+)?"
        r"(?i:whitebox|greybox|final\s*review)"
    ),
    re.compile(r"\b([A-Z][A-Z0-9\-]+(?:\s+[A-Z][a-z]+)?)\s+(?i:whitebox|greybox)"),
)

_LEADING_WORDS: Final = frozenset({"The", "A", "An", "This", "That", "Our", "Its"})
_REJECTED_WORDS: Final = frozenset(
    {
        "currently",
        "now",
        "still",
        "also",
        "ship",
        "vehicle",
        "team",
        "teams",
        "work",
        "whitebox",
        "greybox",
        "final",
        "review",
        "concept",
        "unannounced",
        "is",
        "in",
    }
)
MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 49


def classify_stage(text: str) -> DevelopmentStage | None:
    for pattern, stage in STAGE_RULES:
        if pattern.search(text):
            return stage
    return None


def placeholder_codenames(text: str) -> list[str]:
    """Numbered placeholder identities mentioned in ``text``, in first-seen order."""

    numbers: list[str] = []
    for pattern in NUMBERED_PATTERNS:
        for match in pattern.finditer(text):
            raw = match.group(1)
            number = str(int(raw) if raw.isdigit() else ORDINAL_WORDS[raw.lower()])
            if number not in numbers:
                numbers.append(number)
    codenames = [PLACEHOLDER_TEMPLATE.format(number) for number in numbers]
    if not codenames and GENERIC_PATTERN.search(text):
        codenames.append(UNKNOWN_PLACEHOLDER)
    return codenames


def named_entities(text: str) -> list[str]:
    names: list[str] = []
    for pattern in NAMED_PATTERNS:
        for match in pattern.finditer(text):
            name = _clean_name(match.group(1))
            if name is not None and name not in names:
                names.append(name)
    return names


def _clean_name(raw: str) -> str | None:
    words = raw.split()
    while words and words[0] in _LEADING_WORDS:
        words = words[1:]
    if not words:
        return None
    if all(word.lower() in _REJECTED_WORDS for word in words):
        return None
    name = " ".join(words)
    if "unannounced" in name.lower():
        return None
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        return None
    return name


def extract_candidates(
    *,
    title: str,
    excerpt: str,
    url: str | None,
    published_at: datetime | None,
    source_type: RumorSourceType = RumorSourceType.MONTHLY_REPORT,
    excerpt_length: int = 500,
) -> list[RumorCandidate]:
    """Rumor candidates found in one report's title and excerpt."""

    text = f"{title} {excerpt}"
    stage = classify_stage(text) or DevelopmentStage.CONCEPTING
    evidence = EvidenceItem(
        source=url or title,
        excerpt=excerpt[:excerpt_length],
        date=published_at,
        url=url,
    )
    candidates = [
        RumorCandidate(
            codename=codename,
            evidence=evidence,
            source_type=source_type,
            stage=stage,
            source_url=url,
            source_date=published_at,
        )
        for codename in placeholder_codenames(text)
    ]
    candidates.extend(
        RumorCandidate(
            codename=name,
            possible_name=name,
            evidence=evidence,
            source_type=source_type,
            stage=stage,
            source_url=url,
            source_date=published_at,
        )
        for name in named_entities(text)
    )
    return candidates
