# src/focusflow/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from .task_models import DEFAULT_REMIND_MINUTES, Priority, Task

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]

# Fields that patch_task() may touch. "id" and "created_at" are immutable.
_PATCHABLE = {
    "title",
    "done",
    "priority",
    "due",
    "time",
    "remind_mins",
    "estimate_mins",
    "started_at",
}


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Change listeners run after every committed mutation, on the caller's thread.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._listeners: list[ChangeListener] = []
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- listeners ----

    def add_listener(self, callback: ChangeListener) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_listener(self, callback: ChangeListener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(callback)

    def _notify_changed(self) -> None:
        for cb in list(self._listeners):
            try:
                cb()
            except Exception:
                logger.exception("TaskStore change listener failed")

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    done INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    priority TEXT NOT NULL DEFAULT 'med',
                    due TEXT NOT NULL DEFAULT '',
                    time TEXT NOT NULL DEFAULT '',
                    remind_mins INTEGER NOT NULL DEFAULT 60,
                    estimate_mins INTEGER,
                    started_at REAL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("priority", "TEXT NOT NULL DEFAULT 'med'")
            add_col("due", "TEXT NOT NULL DEFAULT ''")
            add_col("time", "TEXT NOT NULL DEFAULT ''")
            add_col("remind_mins", f"INTEGER NOT NULL DEFAULT {DEFAULT_REMIND_MINUTES}")
            add_col("estimate_mins", "INTEGER")
            add_col("started_at", "REAL")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_done_due ON tasks(done, due)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            done=bool(row["done"]),
            created_at=float(row["created_at"] or 0.0),
            priority=Priority.from_db(row["priority"]),
            due=str(row["due"] or ""),
            time=str(row["time"] or ""),
            remind_mins=max(0, int(row["remind_mins"] or 0)),
            estimate_mins=int(row["estimate_mins"]) if row["estimate_mins"] is not None else None,
            started_at=float(row["started_at"]) if row["started_at"] is not None else None,
        )

    @staticmethod
    def _field_to_db(name: str, value: Any) -> Any:
        if name == "done":
            return 1 if value else 0
        if name == "priority":
            return Priority.from_db(str(value)).value
        if name in ("due", "time", "title"):
            return str(value or "").strip()
        if name == "remind_mins":
            return max(0, int(value or 0))
        if name == "estimate_mins":
            return int(value) if value is not None else None
        if name == "started_at":
            return float(value) if value is not None else None
        return value

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def get_tasks(self) -> list[Task]:
        """Snapshot of every task, newest first."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks ORDER BY created_at DESC, id ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def get_task(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def add_task(
        self,
        title: str,
        *,
        priority: Priority | str = Priority.MED,
        due: str = "",
        time: str = "",
        remind_mins: int = DEFAULT_REMIND_MINUTES,
        estimate_mins: int | None = None,
        now_ts: float | None = None,
    ) -> Task:
        task = Task.create(
            title,
            priority=priority,
            due=due,
            time=time,
            remind_mins=remind_mins,
            estimate_mins=estimate_mins,
            now_ts=now_ts,
        )
        self.insert_task(task)
        return task

    def insert_task(self, task: Task) -> None:
        if not task.title.strip():
            raise ValueError("title is required")

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, title, done, created_at, priority,
                    due, time, remind_mins, estimate_mins, started_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title.strip(),
                    1 if task.done else 0,
                    float(task.created_at),
                    task.priority.value,
                    task.due,
                    task.time,
                    max(0, int(task.remind_mins)),
                    task.estimate_mins,
                    task.started_at,
                ),
            )
            conn.commit()
        finally:
            conn.close()

        logger.debug(
            "Task added id=%s due=%s time=%s remind=%s priority=%s",
            task.id,
            task.due,
            task.time,
            task.remind_mins,
            task.priority.value,
        )
        self._notify_changed()

    def patch_task(self, task_id: str, **fields: Any) -> None:
        """Partial update. Unknown field names raise ValueError; unknown ids are a no-op."""
        unknown = set(fields) - _PATCHABLE
        if unknown:
            raise ValueError(f"cannot patch fields: {', '.join(sorted(unknown))}")
        if not fields:
            return

        cols: list[str] = []
        params: list[Any] = []
        for name, value in fields.items():
            cols.append(f"{name} = ?")
            params.append(self._field_to_db(name, value))
        params.append(str(task_id))

        sql = f"UPDATE tasks SET {', '.join(cols)} WHERE id = ?"

        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            changed = cur.rowcount > 0
        finally:
            conn.close()

        if changed:
            logger.debug("Task patched id=%s fields=%s", task_id, sorted(fields))
            self._notify_changed()

    def toggle_done(self, task_id: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        self.patch_task(task_id, done=not task.done)
        return self.get_task(task_id)

    def start_task(self, task_id: str, *, now_ts: float | None = None) -> Task | None:
        """Record the first time work started on a task; later starts keep the original stamp."""
        task = self.get_task(task_id)
        if task is None:
            return None
        if task.started_at is None:
            self.patch_task(task_id, started_at=time.time() if now_ts is None else now_ts)
            return self.get_task(task_id)
        return task

    def delete_task(self, task_id: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))
            conn.commit()
            deleted = cur.rowcount > 0
        finally:
            conn.close()

        if deleted:
            logger.debug("Task deleted id=%s", task_id)
            self._notify_changed()
        return deleted

    def clear_done(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE done = 1")
            conn.commit()
            n = int(cur.rowcount)
        finally:
            conn.close()

        if n:
            logger.info("Cleared %s done task(s)", n)
            self._notify_changed()
        return n
