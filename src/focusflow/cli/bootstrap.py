# src/focusflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (stores, ledger, notifiers, signals),
- builds the deadline evaluator once a loop is available.
"""

from __future__ import annotations

import asyncio
import logging

from ..config import get_settings
from ..core.state import AppState
from ..notify.notifier import ConsoleNotifier, DesktopNotifier, NotifierGroup
from ..tasks.evaluator import DeadlineEvaluator
from ..tasks.ledger import FiredLedger
from ..tasks.runtime import AsyncioTimer, SystemClock, ViewSignals
from ..tasks.task_store import TaskStore
from ..tasks.time_state import resolve_tz

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.ledger_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    try:
        tz = resolve_tz(getattr(settings, "timezone", "local"))
    except ValueError:
        logger.warning("Unknown timezone %r; using system local time.", settings.timezone)
        tz = None

    notifier = NotifierGroup(
        ConsoleNotifier(bell=bool(getattr(settings, "terminal_bell", True))),
        DesktopNotifier(
            app_name=str(getattr(settings, "app_name", "focusflow")),
            enabled=bool(getattr(settings, "desktop_notifications", True)),
        ),
    )

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        ledger=FiredLedger(settings.ledger_db_path),
        notifier=notifier,
        signals=ViewSignals(),
        clock=SystemClock(tz),
        tz=tz,
    )


def build_evaluator(state: AppState, *, loop: asyncio.AbstractEventLoop | None = None) -> DeadlineEvaluator:
    settings = state.settings
    evaluator = DeadlineEvaluator(
        state.task_store,
        state.ledger,
        state.notifier,
        clock=state.clock,
        timer=AsyncioTimer(loop),
        signals=state.signals,
        interval_seconds=float(getattr(settings, "tick_seconds", 10.0)),
        reminder_grace_minutes=int(getattr(settings, "reminder_grace_minutes", 5)),
        missed_grace_minutes=int(getattr(settings, "missed_grace_minutes", 5)),
        tz=state.tz,
    )
    state.evaluator = evaluator
    return evaluator
