# src/focusflow/tasks/evaluator.py

from __future__ import annotations

"""
Deadline evaluator.

A small polling loop that, on every trigger:
- takes a snapshot of the task list,
- fires each task's reminder once its lead window opens (at most once per schedule key),
- escalates missed tasks to high priority (at most once per schedule key),
- emits the one-shot onboarding warning and the daily "due today" summary.

Triggers: a periodic tick, view signals (visibility restored, focus gained/lost) and
task-list mutations. Delivery belongs to the notifier, not the evaluator.
"""

import datetime as dt
import logging
from dataclasses import dataclass, field

from ..core.ports import Cancellable, Clock, LedgerRepo, Notifier, Signals, TaskRepo, Timer, Unsubscribe
from .ledger import ONBOARDING_KEY, escalation_key, reminder_key, summary_key
from .task_models import Priority, Task
from .time_state import DEFAULT_GRACE_MINUTES, due_instant, is_missed, local_now, today_key

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ReminderEvent:
    task_id: str
    title: str
    due: str
    time: str
    remind_mins: int

    @classmethod
    def from_task(cls, task: Task) -> ReminderEvent:
        return cls(
            task_id=task.id,
            title=task.title,
            due=task.due,
            time=task.time,
            remind_mins=max(0, int(task.remind_mins or 0)),
        )


@dataclass(slots=True, frozen=True)
class EscalationEvent:
    task_id: str
    title: str
    previous_priority: Priority


@dataclass(slots=True)
class ScanResult:
    reminders: list[ReminderEvent] = field(default_factory=list)
    escalations: list[EscalationEvent] = field(default_factory=list)
    failed_tasks: list[str] = field(default_factory=list)
    coalesced: bool = False


def reminder_window(
    task: Task,
    now: dt.datetime,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> tuple[dt.datetime, dt.datetime] | None:
    """[deadline - lead minutes, deadline + grace]; None when the task has no usable due date."""
    deadline = due_instant(task, now, tz)
    if deadline is None:
        return None
    lead = dt.timedelta(minutes=max(0, int(task.remind_mins or 0)))
    return deadline - lead, deadline + dt.timedelta(minutes=max(0, grace_minutes))


def _safe_is_fired(ledger: LedgerRepo, key: str) -> bool:
    # An unreadable ledger counts as "not fired": a duplicate beats a lost reminder.
    try:
        return ledger.is_fired(key)
    except Exception:
        logger.exception("Ledger read failed key=%s", key)
        return False


def should_fire_reminder(
    task: Task,
    now: dt.datetime,
    ledger: LedgerRepo,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> bool:
    if task.done or not task.due:
        return False
    window = reminder_window(task, now, grace_minutes=grace_minutes, tz=tz)
    if window is None:
        return False
    start, end = window
    if not (start <= local_now(now, tz) <= end):
        return False
    return not _safe_is_fired(ledger, reminder_key(task))


def should_escalate(
    task: Task,
    now: dt.datetime,
    ledger: LedgerRepo,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> bool:
    if task.done or task.priority == Priority.HIGH:
        return False
    if not is_missed(task, now, grace_minutes=grace_minutes, tz=tz):
        return False
    return not _safe_is_fired(ledger, escalation_key(task))


class DeadlineEvaluator:
    """
    Reminder & deadline evaluator with an explicit start/stop lifecycle.

    Stateless across scans except through the ledger. scan() is synchronous and
    never raises; a re-entrant scan() (e.g. a store listener firing mid-scan) is
    coalesced into a no-op.
    """

    def __init__(
        self,
        store: TaskRepo,
        ledger: LedgerRepo,
        notifier: Notifier,
        *,
        clock: Clock,
        timer: Timer | None = None,
        signals: Signals | None = None,
        interval_seconds: float = 10.0,
        reminder_grace_minutes: int = DEFAULT_GRACE_MINUTES,
        missed_grace_minutes: int = DEFAULT_GRACE_MINUTES,
        tz: dt.tzinfo | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._notifier = notifier
        self._clock = clock
        self._timer = timer
        self._signals = signals
        self._interval = max(0.5, float(interval_seconds))
        self._reminder_grace = max(0, int(reminder_grace_minutes))
        self._missed_grace = max(0, int(missed_grace_minutes))
        self._tz = tz

        self._scanning = False
        self._tick: Cancellable | None = None
        self._unsubscribers: list[Unsubscribe] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    # ---- lifecycle ----

    def start(self) -> None:
        if self._running:
            return
        if self._timer is None:
            raise RuntimeError("DeadlineEvaluator.start() needs a timer")

        self._running = True
        self._store.add_listener(self.request_scan)
        self._unsubscribers.append(lambda: self._store.remove_listener(self.request_scan))

        if self._signals is not None:
            self._unsubscribers.append(self._signals.on_visibility_restored(self._on_signal))
            self._unsubscribers.append(self._signals.on_focus_gained(self._on_signal))
            self._unsubscribers.append(self._signals.on_focus_lost(self._on_signal))

        self._tick = self._timer.schedule_periodic(self._interval, self._on_tick)
        logger.info("DeadlineEvaluator started interval=%.1fs", self._interval)
        self.scan()

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False

        if self._tick is not None:
            self._tick.cancel()
            self._tick = None

        for unsubscribe in self._unsubscribers:
            try:
                unsubscribe()
            except Exception:
                logger.exception("Evaluator unsubscribe failed")
        self._unsubscribers.clear()
        logger.info("DeadlineEvaluator stopped")

    # ---- triggers ----

    def _on_tick(self) -> None:
        self.scan()

    def _on_signal(self) -> None:
        self.scan()

    def request_scan(self) -> None:
        """Schedule a scan after the current mutation commits (never inline)."""
        if not self._running or self._timer is None:
            return
        try:
            self._timer.call_soon(self._scan_if_running)
        except Exception:
            logger.exception("Failed to schedule re-scan")

    def _scan_if_running(self) -> None:
        if self._running:
            self.scan()

    # ---- scan ----

    def scan(self) -> ScanResult:
        if self._scanning:
            logger.debug("Scan already in progress; coalescing trigger")
            return ScanResult(coalesced=True)

        self._scanning = True
        result = ScanResult()
        try:
            self._scan_once(result)
        except Exception:
            logger.exception("Deadline scan failed")
        finally:
            self._scanning = False

        if result.reminders or result.escalations or result.failed_tasks:
            logger.info(
                "Scan done reminders=%s escalations=%s failed=%s",
                len(result.reminders),
                len(result.escalations),
                len(result.failed_tasks),
            )
        return result

    def _scan_once(self, result: ScanResult) -> None:
        now = self._clock.now()

        self._maybe_warn_onboarding()

        try:
            tasks = list(self._store.get_tasks())
        except Exception:
            logger.exception("get_tasks failed")
            return

        self._maybe_summarize_today(tasks, now)

        for task in tasks:
            if task.done or not task.due:
                continue
            try:
                self._evaluate_task(task, now, result)
            except Exception:
                logger.exception("Evaluation failed task_id=%s", getattr(task, "id", "?"))
                result.failed_tasks.append(str(getattr(task, "id", "?")))

    def _evaluate_task(self, task: Task, now: dt.datetime, result: ScanResult) -> None:
        # Reminder and escalation use independent keys; both may fire in the same pass.
        if should_fire_reminder(task, now, self._ledger, grace_minutes=self._reminder_grace, tz=self._tz):
            self._mark(reminder_key(task))
            event = ReminderEvent.from_task(task)
            result.reminders.append(event)
            logger.info(
                "Reminder fired task_id=%s due=%s time=%s remind=%s",
                task.id,
                task.due,
                task.time,
                event.remind_mins,
            )
            self._deliver("deliver_reminder", event)

        if should_escalate(task, now, self._ledger, grace_minutes=self._missed_grace, tz=self._tz):
            self._mark(escalation_key(task))
            event = EscalationEvent(task_id=task.id, title=task.title, previous_priority=task.priority)
            result.escalations.append(event)
            try:
                self._store.patch_task(task.id, priority=Priority.HIGH)
            except Exception:
                logger.exception("Escalation patch failed task_id=%s", task.id)
            logger.info("Missed task escalated task_id=%s from=%s", task.id, task.priority.value)
            self._deliver("deliver_escalation_notice", event)

    def _maybe_warn_onboarding(self) -> None:
        try:
            available = bool(self._notifier.is_available())
        except Exception:
            logger.debug("Notifier availability check failed", exc_info=True)
            available = False
        if available or _safe_is_fired(self._ledger, ONBOARDING_KEY):
            return
        self._mark(ONBOARDING_KEY)
        self._deliver("deliver_onboarding_warning")

    def _maybe_summarize_today(self, tasks: list[Task], now: dt.datetime) -> None:
        day = today_key(now, self._tz)
        due_today = [t for t in tasks if not t.done and t.due == day]
        if not due_today:
            return
        key = summary_key(day)
        if _safe_is_fired(self._ledger, key):
            return
        self._mark(key)
        self._deliver("deliver_today_summary", due_today)

    # ---- helpers ----

    def _mark(self, key: str) -> None:
        # Marked before delivery. A failed write leaves the key unfired for the next tick.
        try:
            self._ledger.mark_fired(key)
        except Exception:
            logger.exception("Ledger write failed key=%s", key)

    def _deliver(self, method: str, *args: object) -> None:
        try:
            getattr(self._notifier, method)(*args)
        except Exception:
            logger.exception("Notifier %s failed", method)
