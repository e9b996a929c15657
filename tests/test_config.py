# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from focusflow.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "FOCUSFLOW_DATA_DIR",
        "FOCUSFLOW_TASKS_DB_PATH",
        "FOCUSFLOW_LEDGER_DB_PATH",
        "FOCUSFLOW_TICK_SECONDS",
        "FOCUSFLOW_REMINDER_GRACE_MINUTES",
        "FOCUSFLOW_MISSED_GRACE_MINUTES",
        "FOCUSFLOW_TIMEZONE",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.tick_seconds == 10.0
    assert s.reminder_grace_minutes == 5
    assert s.missed_grace_minutes == 5
    assert s.timezone == "local"
    assert s.tasks_db_path == Path(".local/focusflow") / "tasks.sqlite3"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("FOCUSFLOW_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("FOCUSFLOW_TICK_SECONDS", "0.1")
    monkeypatch.setenv("FOCUSFLOW_REMINDER_GRACE_MINUTES", "10")
    monkeypatch.setenv("FOCUSFLOW_MISSED_GRACE_MINUTES", "not-a-number")
    monkeypatch.setenv("FOCUSFLOW_DESKTOP_NOTIFICATIONS", "off")

    s = Settings.from_env()
    assert s.ledger_db_path == tmp_path / "ledger.sqlite3"
    assert s.tick_seconds == 0.5
    assert s.reminder_grace_minutes == 10
    assert s.missed_grace_minutes == 5
    assert s.desktop_notifications is False
