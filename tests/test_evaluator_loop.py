# tests/test_evaluator_loop.py

from __future__ import annotations

import asyncio
import datetime as dt
from dataclasses import replace

import pytest

from focusflow.tasks.evaluator import DeadlineEvaluator
from focusflow.tasks.runtime import AsyncioTimer, SystemClock, ViewSignals

from .fakes import FakeClock, FakeTaskRepo, FakeTimer, MemoryLedger, RecordingNotifier, make_task


def _wired(tasks=None, now=dt.datetime(2024, 1, 1, 9, 0)):
    repo = FakeTaskRepo(tasks or [])
    clock = FakeClock(now)
    timer = FakeTimer()
    signals = ViewSignals()
    notifier = RecordingNotifier()
    evaluator = DeadlineEvaluator(
        repo,
        MemoryLedger(),
        notifier,
        clock=clock,
        timer=timer,
        signals=signals,
        interval_seconds=10,
    )
    return evaluator, repo, clock, timer, signals, notifier


def test_start_schedules_tick_subscribes_and_scans_immediately() -> None:
    task = make_task()
    evaluator, repo, clock, timer, signals, notifier = _wired([task], now=dt.datetime(2024, 1, 1, 9, 50))

    evaluator.start()

    assert evaluator.running
    assert [interval for interval, _, _ in timer.periodic] == [10.0]
    assert len(repo.listeners) == 1
    assert signals.listener_count() == 3
    assert len(notifier.reminders) == 1

    # Starting twice is a no-op.
    evaluator.start()
    assert len(timer.periodic) == 1


def test_periodic_tick_and_view_signals_trigger_scans() -> None:
    task = make_task(remind_mins=15)
    evaluator, _, clock, timer, signals, notifier = _wired([task])
    evaluator.start()
    assert notifier.reminders == []

    clock.set(dt.datetime(2024, 1, 1, 9, 45))
    timer.tick()
    assert len(notifier.reminders) == 1

    # Re-scans on focus/visibility never double-fire.
    signals.emit_visibility_restored()
    signals.emit_focus_gained()
    signals.emit_focus_lost()
    timer.tick()
    assert len(notifier.reminders) == 1


def test_visibility_restored_catches_up_after_sleep() -> None:
    task = make_task(remind_mins=15)
    evaluator, _, clock, _, signals, notifier = _wired([task])
    evaluator.start()

    # Laptop lid closed at 09:00, reopened at 10:03: still inside the grace window.
    clock.set(dt.datetime(2024, 1, 1, 10, 3))
    signals.emit_visibility_restored()
    assert len(notifier.reminders) == 1


def test_mutation_triggers_deferred_rescan() -> None:
    evaluator, repo, _, timer, _, notifier = _wired(now=dt.datetime(2024, 1, 1, 9, 50))
    evaluator.start()

    repo.put(make_task("new"))
    # Not inline: the scan waits for the mutation to finish.
    assert notifier.reminders == []
    assert len(timer.pending) == 1

    timer.run_pending()
    assert [e.task_id for e in notifier.reminders] == ["new"]


def test_escalation_write_back_schedules_a_harmless_rescan() -> None:
    task = make_task()
    evaluator, repo, _, timer, _, notifier = _wired([task], now=dt.datetime(2024, 1, 1, 10, 30))
    evaluator.start()

    assert len(notifier.escalations) == 1
    assert timer.run_pending() == 1
    assert len(notifier.escalations) == 1


def test_stop_cancels_tick_and_removes_listeners() -> None:
    task = make_task(remind_mins=15)
    evaluator, repo, clock, timer, signals, notifier = _wired([task])
    evaluator.start()
    evaluator.stop()

    assert not evaluator.running
    assert all(handle.cancelled for _, _, handle in timer.periodic)
    assert repo.listeners == []
    assert signals.listener_count() == 0

    clock.set(dt.datetime(2024, 1, 1, 9, 50))
    timer.tick()
    signals.emit_focus_gained()
    repo.put(replace(task, title="edited"))
    timer.run_pending()
    assert notifier.reminders == []

    evaluator.stop()


def test_pending_rescan_is_dropped_after_stop() -> None:
    evaluator, repo, clock, timer, _, notifier = _wired()
    evaluator.start()
    clock.set(dt.datetime(2024, 1, 1, 9, 50))
    repo.put(make_task())
    evaluator.stop()

    timer.run_pending()
    assert notifier.reminders == []


def test_start_without_timer_raises() -> None:
    evaluator = DeadlineEvaluator(
        FakeTaskRepo(), MemoryLedger(), RecordingNotifier(), clock=FakeClock(dt.datetime(2024, 1, 1))
    )
    with pytest.raises(RuntimeError):
        evaluator.start()


def test_view_signals_isolate_listener_errors() -> None:
    signals = ViewSignals()
    calls: list[str] = []

    def boom() -> None:
        raise RuntimeError("listener bug")

    signals.on_focus_gained(boom)
    unsubscribe = signals.on_focus_gained(lambda: calls.append("ok"))
    signals.emit_focus_gained()
    unsubscribe()
    unsubscribe()
    signals.emit_focus_gained()

    assert calls == ["ok"]


def test_system_clock_is_timezone_aware() -> None:
    assert SystemClock().now().tzinfo is not None
    utc_now = SystemClock(dt.timezone.utc).now()
    assert utc_now.utcoffset() == dt.timedelta(0)


@pytest.mark.asyncio
async def test_asyncio_timer_periodic_and_call_soon() -> None:
    timer = AsyncioTimer()
    ticks: list[int] = []
    soon: list[int] = []

    handle = timer.schedule_periodic(0.01, lambda: ticks.append(1))
    timer.call_soon(lambda: soon.append(1))

    await asyncio.sleep(0.1)
    handle.cancel()
    seen = len(ticks)
    await asyncio.sleep(0.05)

    assert soon == [1]
    assert seen >= 2
    assert len(ticks) == seen


@pytest.mark.asyncio
async def test_asyncio_timer_survives_failing_callback() -> None:
    timer = AsyncioTimer()
    calls: list[int] = []

    def flaky() -> None:
        calls.append(1)
        raise RuntimeError("tick failed")

    handle = timer.schedule_periodic(0.01, flaky)
    await asyncio.sleep(0.08)
    handle.cancel()

    assert len(calls) >= 2
