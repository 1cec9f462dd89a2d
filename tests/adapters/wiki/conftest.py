from __future__ import annotations

from typing import Any

import pytest

from tests.helpers.wiki_pages import CUTLASS_WIKITEXT, page_response


@pytest.fixture
def cutlass_page() -> dict[str, Any]:
    return page_response(
        "Cutlass Black",
        CUTLASS_WIKITEXT,
        thumbnail="https://media.example/thumb/cutlass.jpg",
        original="https://media.example/cutlass.jpg",
    )
