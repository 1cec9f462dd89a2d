from __future__ import annotations

from pathlib import Path  # noqa: TC003

import pytest  # noqa: TC002

from fleetsync.config import CacheConfig
from fleetsync.config.storage import HTTP_CACHE_FILENAME


def test_memory_cache_stays_in_process() -> None:
    assert CacheConfig(backend="memory").database_path() == ":memory:"


def test_sqlite_cache_defaults_to_data_dir(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("FLEETSYNC_DATA_DIR", str(tmp_path / "data"))

    path = CacheConfig(backend="sqlite").database_path()

    assert path == str((tmp_path / "data").resolve() / HTTP_CACHE_FILENAME)


def test_explicit_sqlite_path_wins(tmp_path: Path) -> None:
    explicit = str(tmp_path / "responses.db")

    assert CacheConfig(backend="sqlite", sqlite_path=explicit).database_path() == explicit
