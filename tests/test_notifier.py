# tests/test_notifier.py

from __future__ import annotations

import io

from focusflow.notify.notifier import (
    ConsoleNotifier,
    DesktopNotifier,
    NotifierGroup,
    reminder_body,
    summary_headline,
)
from focusflow.tasks.evaluator import EscalationEvent, ReminderEvent
from focusflow.tasks.task_models import Priority

from .fakes import RecordingNotifier, make_task


def _event(**kwargs) -> ReminderEvent:
    base = dict(task_id="t1", title="Write report", due="2024-01-01", time="10:00", remind_mins=15)
    base.update(kwargs)
    return ReminderEvent(**base)


def test_reminder_body() -> None:
    assert reminder_body(_event()) == "Write report • due 2024-01-01 10:00 (in 15 min)"
    assert reminder_body(_event(time="", remind_mins=0)) == "Write report • due 2024-01-01"


def test_summary_headline() -> None:
    tasks = [make_task("a", title="A"), make_task("b", title="B"), make_task("c", title="C")]
    assert summary_headline(tasks) == "3 task(s) today: A +2"
    assert summary_headline(tasks[:1]) == "1 task(s) today: A"


def test_console_notifier_writes_toasts() -> None:
    out = io.StringIO()
    console = ConsoleNotifier(out, bell=True)

    console.deliver_reminder(_event())
    console.deliver_escalation_notice(EscalationEvent("t1", "Write report", Priority.MED))
    console.deliver_onboarding_warning()
    console.deliver_today_summary([make_task(title="A")])

    text = out.getvalue()
    assert text.startswith("\a[")
    assert "[REMINDER] Write report" in text
    assert "[MISSED] Write report: priority set to High" in text
    assert "[NOTICE]" in text
    assert "[TODAY] 1 task(s) today: A" in text
    assert console.is_available() is False


def test_console_notifier_without_bell() -> None:
    out = io.StringIO()
    ConsoleNotifier(out, bell=False).deliver_reminder(_event())
    assert "\a" not in out.getvalue()


def test_desktop_notifier_sends_through_backend() -> None:
    calls: list[dict] = []
    desktop = DesktopNotifier(app_name="ff", enabled=True, send=lambda **kw: calls.append(kw))
    desktop.deliver_reminder(_event())
    desktop.deliver_today_summary([make_task(title="A")])

    assert desktop.is_available() is True
    assert [c["title"] for c in calls] == ["Task reminder", "Today's tasks"]
    assert calls[0]["app_name"] == "ff"
    assert calls[1]["message"] == "• A"


def test_desktop_notifier_swallows_backend_errors() -> None:
    def no_backend(**kwargs):
        raise NotImplementedError("no usable implementation found")

    desktop = DesktopNotifier(enabled=True, send=no_backend)
    assert desktop.is_available() is True

    desktop.deliver_reminder(_event())
    assert desktop.is_available() is False


def test_disabled_desktop_notifier_is_silent() -> None:
    calls: list[dict] = []
    desktop = DesktopNotifier(enabled=False, send=lambda **kw: calls.append(kw))
    desktop.deliver_reminder(_event())
    assert calls == []
    assert desktop.is_available() is False


def test_group_isolates_failing_channels() -> None:
    class Broken(RecordingNotifier):
        def deliver_reminder(self, event) -> None:
            raise RuntimeError("boom")

        def is_available(self) -> bool:
            raise RuntimeError("boom")

    healthy = RecordingNotifier(available=False)
    group = NotifierGroup(Broken(), healthy)

    group.deliver_reminder(_event())
    group.deliver_onboarding_warning()

    assert len(healthy.reminders) == 1
    assert healthy.onboarding == 1
    assert group.is_available() is False

    healthy.available = True
    assert group.is_available() is True
