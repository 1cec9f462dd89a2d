from __future__ import annotations

import re
import unicodedata

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Lower-case ``value``, collapse non-alphanumeric runs to ``-`` and trim the ends.

    >>> slugify("  Drake Cutlass Black (Best in Show) ")
    'drake-cutlass-black-best-in-show'
    """

    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return _NON_ALNUM.sub("-", normalized.lower()).strip("-")
