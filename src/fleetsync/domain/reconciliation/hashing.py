"""Content hashing for canonical ship state.

The digest covers the slug, the display name and every merged field. Media URLs
never enter the canonical form, so churn in image or model links cannot by itself
look like a data change.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any, Final

VOLATILE_FIELDS: Final[frozenset[str]] = frozenset({"image_url", "model_url", "model_glb_url"})


def canonical_form(slug: str, name: str, specs: Mapping[str, Any]) -> str:
    document = {
        "slug": slug,
        "name": name,
        "specs": {key: value for key, value in specs.items() if key not in VOLATILE_FIELDS},
    }
    return json.dumps(
        document,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def content_hash(slug: str, name: str, specs: Mapping[str, Any]) -> str:
    return hashlib.sha256(canonical_form(slug, name, specs).encode("utf-8")).hexdigest()
