# src/focusflow/core/state.py

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Any

from ..tasks.evaluator import DeadlineEvaluator
from ..tasks.ledger import FiredLedger
from ..tasks.runtime import ViewSignals
from ..tasks.task_store import TaskStore
from .ports import Clock, Notifier


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    ledger: FiredLedger
    notifier: Notifier
    signals: ViewSignals
    clock: Clock
    tz: dt.tzinfo | None = None

    # Built by the entrypoint once an event loop is running.
    evaluator: DeadlineEvaluator | None = None
