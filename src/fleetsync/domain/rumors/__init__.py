"""Mining text feeds for vehicles that are not in the catalog yet."""

from __future__ import annotations

from .extraction import (
    PLACEHOLDER_TEMPLATE,
    classify_stage,
    extract_candidates,
    named_entities,
    placeholder_codenames,
)
from .pipeline import (
    RumorSyncResult,
    confirm_rumor,
    filter_known,
    gather_candidates,
    group_by_codename,
    sync_rumors,
)

__all__ = [
    "PLACEHOLDER_TEMPLATE",
    "RumorSyncResult",
    "classify_stage",
    "confirm_rumor",
    "extract_candidates",
    "filter_known",
    "gather_candidates",
    "group_by_codename",
    "named_entities",
    "placeholder_codenames",
    "sync_rumors",
]
