# src/focusflow/tasks/ledger.py

"""
Fired-flag ledger.

One durable keyed store answers "has this already fired?" for every one-shot signal
the evaluator emits. Keys embed the task schedule, so editing due/time/lead minutes
produces a fresh, unfired key. Entries are never deleted.
"""

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path

from .task_models import Task

logger = logging.getLogger(__name__)

ONBOARDING_KEY = "notif_warned"


def reminder_key(task: Task) -> str:
    return f"rem@{task.id}@{task.due}@{task.time}@{max(0, int(task.remind_mins or 0))}"


def escalation_key(task: Task) -> str:
    # Schedule-based only: lead minutes do not take part.
    return f"boost@{task.id}@{task.due}@{task.time}"


def summary_key(day: str) -> str:
    return f"summary@{day}"


class FiredLedger:
    """SQLite-backed set of fired keys (one short-lived connection per call)."""

    def __init__(self, db_path: str | Path = "ledger.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("FiredLedger ready db=%s", self._db_path)

    def close(self) -> None:
        return

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS fired_flags (
                    key TEXT PRIMARY KEY,
                    fired_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def is_fired(self, key: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT 1 FROM fired_flags WHERE key = ?", (key,))
            return cur.fetchone() is not None
        finally:
            conn.close()

    def mark_fired(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT OR IGNORE INTO fired_flags(key, fired_at) VALUES (?, ?)",
                (key, time.time()),
            )
            conn.commit()
        finally:
            conn.close()
        logger.debug("Ledger marked key=%s", key)

    def count(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM fired_flags").fetchone()
            return int(n)
        finally:
            conn.close()
