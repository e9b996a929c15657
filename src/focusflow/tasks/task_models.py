# src/focusflow/tasks/task_models.py

from __future__ import annotations

import secrets
import time
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

DEFAULT_REMIND_MINUTES = 60


class Priority(StrEnum):
    HIGH = "high"
    MED = "med"
    LOW = "low"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MED
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MED


def new_task_id() -> str:
    return secrets.token_hex(5)


def _now_ts() -> float:
    return time.time()


def _opt_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _opt_float(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


@dataclass(slots=True)
class Task:
    """
    A to-do item.

    Only `priority` is ever written by the deadline evaluator (escalation to high);
    everything else belongs to the user.
    """

    id: str
    title: str
    done: bool = False
    created_at: float = 0.0
    priority: Priority = Priority.MED

    # Local calendar date "YYYY-MM-DD" and local time "HH:MM"; "" means unset.
    due: str = ""
    time: str = ""

    remind_mins: int = DEFAULT_REMIND_MINUTES
    estimate_mins: int | None = None
    started_at: float | None = None

    @classmethod
    def create(
        cls,
        title: str,
        *,
        priority: Priority | str = Priority.MED,
        due: str = "",
        time: str = "",
        remind_mins: int = DEFAULT_REMIND_MINUTES,
        estimate_mins: int | None = None,
        now_ts: float | None = None,
    ) -> Task:
        title = (title or "").strip()
        if not title:
            raise ValueError("title is required")
        return cls(
            id=new_task_id(),
            title=title,
            done=False,
            created_at=_now_ts() if now_ts is None else float(now_ts),
            priority=Priority.from_db(str(priority)),
            due=(due or "").strip(),
            time=(time or "").strip(),
            remind_mins=max(0, int(remind_mins or 0)),
            estimate_mins=estimate_mins,
            started_at=None,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Build a Task from a loosely-typed record, backfilling missing fields."""
        remind = _opt_int(data.get("remind_mins", data.get("remindMins")))
        return cls(
            id=str(data.get("id") or new_task_id()),
            title=str(data.get("title") or ""),
            done=bool(data.get("done", False)),
            created_at=_opt_float(data.get("created_at", data.get("createdAt"))) or 0.0,
            priority=Priority.from_db(data.get("priority")),
            due=str(data.get("due") or ""),
            time=str(data.get("time") or ""),
            remind_mins=DEFAULT_REMIND_MINUTES if remind is None else max(0, remind),
            estimate_mins=_opt_int(data.get("estimate_mins", data.get("estimateMins"))),
            started_at=_opt_float(data.get("started_at", data.get("startedAt"))),
        )

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["priority"] = self.priority.value
        return out
