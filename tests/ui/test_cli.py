from __future__ import annotations

import json
from typing import Any

import pytest

from fleetsync.domain.errors import LockContentionError, ProviderError, ValidationError
from fleetsync.ui import cli


def _capture(monkeypatch: pytest.MonkeyPatch, name: str, result: dict[str, Any]) -> dict[str, Any]:
    captured: dict[str, Any] = {}

    def fake_job(*args: object, **kwargs: object) -> dict[str, Any]:
        captured["args"] = args
        captured.update(kwargs)
        return result

    monkeypatch.setattr(cli, name, fake_job)
    return captured


def _raise(monkeypatch: pytest.MonkeyPatch, name: str, error: Exception) -> None:
    def failing_job(*_: object, **__: object) -> dict[str, Any]:
        raise error

    monkeypatch.setattr(cli, name, failing_job)


def test_ships_sync_flags(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured = _capture(monkeypatch, "sync_ships_job", {"success": True, "upserts": 2})

    exit_code = cli.main(["ships-sync", "--force", "--auto"])

    assert exit_code == 0
    assert (captured["force"], captured["auto_sync"]) == (True, True)
    assert json.loads(capsys.readouterr().out) == {"success": True, "upserts": 2}


def test_override_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = _capture(monkeypatch, "override_ship_source", {"success": True})

    exit_code = cli.main(
        [
            "ship-data-override",
            "hull-c",
            "--source",
            "wiki",
            "--reason",
            "cargo is wrong upstream",
            "--clear-cache",
            "--set-by",
            "ops",
        ]
    )

    assert exit_code == 0
    assert captured["entity_key"] == "hull-c"
    assert captured["preferred_source"] == "wiki"
    assert captured["reason"] == "cargo is wrong upstream"
    assert captured["clear_cache"] is True
    assert captured["set_by"] == "ops"


def test_override_rejects_unknown_source() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["ship-data-override", "hull-c", "--source", "spectrum"])

    assert excinfo.value.code == 2


def test_probe_and_confirm_arguments(monkeypatch: pytest.MonkeyPatch) -> None:
    probe = _capture(monkeypatch, "probe_slug", {"success": True, "available": True})
    confirm = _capture(monkeypatch, "confirm_rumor_job", {"success": True})

    assert cli.main(["slug-probe", "hull-c"]) == 0
    assert cli.main(["rumor-confirm", "b3f0c7d2-1111-4a57-9c1e-5b2e1d0f7a10", "hull-c"]) == 0

    assert probe["args"] == ("hull-c",)
    assert confirm["rumor_id"] == "b3f0c7d2-1111-4a57-9c1e-5b2e1d0f7a10"
    assert confirm["ship_slug"] == "hull-c"


@pytest.mark.parametrize(
    ("command", "job"),
    [
        ("cache-refresh", "refresh_provider_cache"),
        ("rumor-sync", "sync_rumors_job"),
        ("cleanup", "run_cleanup"),
        ("cleanup-old-news", "cleanup_old_news"),
        ("flight-ready-news", "announce_flight_ready_job"),
    ],
)
def test_argumentless_jobs(monkeypatch: pytest.MonkeyPatch, command: str, job: str) -> None:
    captured = _capture(monkeypatch, job, {"success": True})

    assert cli.main([command]) == 0
    assert captured["args"] == ()


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (ValidationError("bad input"), cli.EXIT_INVALID),
        (LockContentionError("cleanup"), cli.EXIT_ALREADY_RUNNING),
        (ProviderError("wiki", "down"), 1),
    ],
)
def test_exit_codes(monkeypatch: pytest.MonkeyPatch, error: Exception, expected: int) -> None:
    _raise(monkeypatch, "run_cleanup", error)

    assert cli.main(["cleanup"]) == expected


def test_unsuccessful_result_exits_non_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    _capture(monkeypatch, "run_cleanup", {"success": False, "error": "expired_cache: locked"})

    assert cli.main(["cleanup"]) == 1


def test_db_upgrade_uses_given_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, Any] = {}

    def fake_upgrade(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(
        "fleetsync.adapters.sqlalchemy.migrations.upgrade_head", fake_upgrade
    )

    assert cli.main(["db", "upgrade", "--database-uri", "sqlite+pysqlite:///x.db"]) == 0
    assert captured == {"database_uri": "sqlite+pysqlite:///x.db"}
