"""Reconciliation of per-provider ship payloads into canonical records.

Stages:
- merge: pick each canonical field from the first provider (in configured order)
  with a non-blank value, or take a pinned provider's payload verbatim
- hash: digest the merged state, media excluded
- decide: write when the hash moved or a fresh media link differs from the stored one
- apply: carry stored media forward, stamp provenance and flight-ready transitions
"""

from __future__ import annotations

from .engine import ReconcileDecision, ReconciliationEngine
from .hashing import VOLATILE_FIELDS, canonical_form, content_hash
from .merge import MergeResult, is_blank, merge_payloads, provider_order

__all__ = [
    "VOLATILE_FIELDS",
    "MergeResult",
    "ReconcileDecision",
    "ReconciliationEngine",
    "canonical_form",
    "content_hash",
    "is_blank",
    "merge_payloads",
    "provider_order",
]
