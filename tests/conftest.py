# tests/conftest.py

from __future__ import annotations

import datetime as dt
from pathlib import Path
from types import SimpleNamespace

import pytest

from focusflow.core.state import AppState
from focusflow.tasks.ledger import FiredLedger
from focusflow.tasks.runtime import ViewSignals
from focusflow.tasks.task_store import TaskStore

from .fakes import FakeClock, RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="focusflow-test",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        ledger_db_path=tmp_path / "ledger.sqlite3",
        tick_seconds=10.0,
        reminder_grace_minutes=5,
        missed_grace_minutes=5,
        default_remind_minutes=60,
        timezone="local",
        desktop_notifications=False,
        terminal_bell=False,
        console_enabled=False,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(dt.datetime(2024, 1, 1, 9, 0))


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, notifier: RecordingNotifier) -> AppState:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep real SQLite stores here (TaskStore/FiredLedger) because
    their correctness is part of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        ledger=FiredLedger(settings.ledger_db_path),
        notifier=notifier,
        signals=ViewSignals(),
        clock=clock,
        tz=None,
    )
