# src/focusflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the deadline evaluator.

The evaluator depends on Protocols instead of concrete implementations.
This keeps storage, delivery channels and time sources swappable and makes testing easier.
"""

import datetime as dt
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from ..tasks.task_models import Task

Callback = Callable[[], None]
Unsubscribe = Callable[[], None]


class TaskRepo(Protocol):
    def get_tasks(self) -> Sequence[Task]: ...
    def patch_task(self, task_id: str, **fields: Any) -> None: ...
    def add_listener(self, callback: Callback) -> None: ...
    def remove_listener(self, callback: Callback) -> None: ...


class LedgerRepo(Protocol):
    def is_fired(self, key: str) -> bool: ...
    def mark_fired(self, key: str) -> None: ...


class Notifier(Protocol):
    """
    Delivery sink. Fire-and-forget: implementations swallow their own errors.

    The evaluator only decides whether to notify and with what payload.
    """

    def is_available(self) -> bool: ...
    def deliver_reminder(self, event: Any) -> None: ...
    def deliver_escalation_notice(self, event: Any) -> None: ...
    def deliver_onboarding_warning(self) -> None: ...
    def deliver_today_summary(self, tasks: Sequence[Task]) -> None: ...


class Clock(Protocol):
    def now(self) -> dt.datetime: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Timer(Protocol):
    def schedule_periodic(self, interval: float, callback: Callback) -> Cancellable: ...
    def call_soon(self, callback: Callback) -> Cancellable: ...


class Signals(Protocol):
    """View-level edge triggers; each subscription returns an unsubscribe callable."""

    def on_visibility_restored(self, callback: Callback) -> Unsubscribe: ...
    def on_focus_gained(self, callback: Callback) -> Unsubscribe: ...
    def on_focus_lost(self, callback: Callback) -> Unsubscribe: ...
