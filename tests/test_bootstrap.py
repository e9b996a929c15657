# tests/test_bootstrap.py

from __future__ import annotations

import asyncio

import pytest

from focusflow.cli.bootstrap import build_evaluator, create_initial_state
from focusflow.tasks.task_store import TaskStore


def test_create_initial_state_wires_local_stores(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.task_store, TaskStore)
    assert settings.tasks_db_path.exists()
    assert settings.ledger_db_path.exists()
    assert state.tz is None
    assert state.evaluator is None
    # Desktop notifications are off in the test settings.
    assert state.notifier.is_available() is False


def test_unknown_timezone_falls_back_to_local(settings) -> None:
    settings.timezone = "Mars/Olympus_Mons"
    state = create_initial_state(settings=settings)
    assert state.tz is None


@pytest.mark.asyncio
async def test_evaluator_runs_on_the_event_loop(settings) -> None:
    settings.tick_seconds = 0.5
    state = create_initial_state(settings=settings)
    evaluator = build_evaluator(state)
    assert state.evaluator is evaluator

    evaluator.start()
    assert evaluator.running
    state.task_store.add_task("Plan the week")
    # The mutation-triggered re-scan runs on the next loop iteration.
    await asyncio.sleep(0)
    evaluator.stop()
    assert not evaluator.running
