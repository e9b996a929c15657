# src/focusflow/notify/notifier.py

"""
Delivery channels for evaluator events.

Every public method here is fire-and-forget: failures are logged and swallowed at
this boundary, so the evaluator's decisions and ledger writes are never rolled back.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TextIO

from plyer import notification

from ..tasks.evaluator import EscalationEvent, ReminderEvent
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

ONBOARDING_TEXT = (
    "Desktop notifications are unavailable (turned off, or no system backend). "
    "Reminders will only appear in this console."
)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def reminder_body(event: ReminderEvent) -> str:
    body = f"{event.title} • due {event.due}"
    if event.time:
        body += f" {event.time}"
    if event.remind_mins:
        body += f" (in {event.remind_mins} min)"
    return body


def summary_body(tasks: Sequence[Task], limit: int = 5) -> str:
    return "\n".join(f"• {t.title}" for t in list(tasks)[:limit])


def summary_headline(tasks: Sequence[Task]) -> str:
    first = tasks[0].title if tasks else ""
    more = f" +{len(tasks) - 1}" if len(tasks) > 1 else ""
    return f"{len(tasks)} task(s) today: {first}{more}"


class ConsoleNotifier:
    """
    Toast-style lines on a text stream (stdout by default).

    The terminal bell stands in for the reminder sound.
    """

    def __init__(self, stream: TextIO | None = None, *, bell: bool = True) -> None:
        self._stream = stream
        self._bell = bell

    def _write(self, text: str, *, ring: bool = False) -> None:
        stream = self._stream or sys.stdout
        try:
            prefix = "\a" if ring and self._bell else ""
            stream.write(f"{prefix}[{_ts_local()}] {text}\n")
            stream.flush()
        except Exception:
            logger.debug("Console toast failed", exc_info=True)

    def is_available(self) -> bool:
        # A console toast is not a system notification; it never counts as "enabled".
        return False

    def deliver_reminder(self, event: ReminderEvent) -> None:
        self._write(f"[REMINDER] {reminder_body(event)}", ring=True)

    def deliver_escalation_notice(self, event: EscalationEvent) -> None:
        self._write(f"[MISSED] {event.title}: priority set to High")

    def deliver_onboarding_warning(self) -> None:
        self._write(f"[NOTICE] {ONBOARDING_TEXT}")

    def deliver_today_summary(self, tasks: Sequence[Task]) -> None:
        self._write(f"[TODAY] {summary_headline(tasks)}")


class DesktopNotifier:
    """System notifications through plyer (libnotify / Windows toast / macOS)."""

    def __init__(
        self,
        *,
        app_name: str = "focusflow",
        enabled: bool = True,
        timeout: int = 10,
        send: Callable[..., Any] | None = None,
    ) -> None:
        self._app_name = app_name
        self._enabled = enabled
        self._timeout = timeout
        self._send = send
        self._failed = False

    def _notify(self, title: str, message: str) -> None:
        if not self._enabled:
            return
        try:
            send = self._send or notification.notify
            send(
                title=title,
                message=message,
                app_name=self._app_name,
                timeout=self._timeout,
            )
        except Exception:
            # plyer raises NotImplementedError when no backend exists for the platform.
            self._failed = True
            logger.warning("Desktop notification failed title=%r", title, exc_info=True)

    def is_available(self) -> bool:
        """Enabled and no delivery has failed yet."""
        return self._enabled and not self._failed

    def deliver_reminder(self, event: ReminderEvent) -> None:
        self._notify("Task reminder", reminder_body(event))

    def deliver_escalation_notice(self, event: EscalationEvent) -> None:
        # Informational only: the console toast covers it.
        return

    def deliver_onboarding_warning(self) -> None:
        return

    def deliver_today_summary(self, tasks: Sequence[Task]) -> None:
        self._notify("Today's tasks", summary_body(tasks))


class NotifierGroup:
    """Fan-out over several notifiers; one failing channel never affects the others."""

    def __init__(self, *notifiers: Any) -> None:
        self._notifiers = list(notifiers)

    def _each(self, method: str, *args: Any) -> None:
        for n in self._notifiers:
            try:
                getattr(n, method)(*args)
            except Exception:
                logger.exception("Notifier %s.%s failed", type(n).__name__, method)

    def is_available(self) -> bool:
        for n in self._notifiers:
            try:
                if n.is_available():
                    return True
            except Exception:
                logger.debug("is_available failed for %s", type(n).__name__, exc_info=True)
        return False

    def deliver_reminder(self, event: ReminderEvent) -> None:
        self._each("deliver_reminder", event)

    def deliver_escalation_notice(self, event: EscalationEvent) -> None:
        self._each("deliver_escalation_notice", event)

    def deliver_onboarding_warning(self) -> None:
        self._each("deliver_onboarding_warning")

    def deliver_today_summary(self, tasks: Sequence[Task]) -> None:
        self._each("deliver_today_summary", tasks)
