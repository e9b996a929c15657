# src/focusflow/tasks/time_state.py

"""
Time-state classification for tasks (today / overdue / missed).

All functions are pure. `now` may be naive (taken as local wall-clock time) or aware
(converted to `tz`, or to the system zone when `tz` is None). Malformed dates and
times never raise.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .task_models import Priority, Task

DEFAULT_TIME = dt.time(9, 0)
DEFAULT_GRACE_MINUTES = 5

_HHMM_RE = re.compile(r"^\d{2}:\d{2}$")
_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

FILTERS = ("all", "high", "med", "low", "overdue", "today", "missed")


@dataclass(frozen=True, slots=True)
class TimeState:
    is_today: bool
    is_overdue: bool
    is_missed: bool


def resolve_tz(name: str | None) -> dt.tzinfo | None:
    """
    Resolve a timezone setting.

    "local" (or empty) -> None, meaning "system local zone at each instant".
    "UTC" -> dt.timezone.utc; "+02:00"/"-0500" -> fixed offset; otherwise IANA name.
    Raises ValueError for invalid identifiers.
    """
    s = (name or "").strip()
    if not s or s.lower() in {"local", "system"}:
        return None
    if s.lower() in {"utc", "z", "gmt"}:
        return dt.timezone.utc

    m = _OFFSET_RE.match(s)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh, mm = int(hh_s), int(mm_s)
        if hh > 23 or mm > 59:
            raise ValueError(f"Invalid timezone offset: {s!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(sign * dt.timedelta(hours=hh, minutes=mm))

    try:
        return ZoneInfo(s)
    except (ZoneInfoNotFoundError, ValueError) as ex:
        raise ValueError(f"Invalid timezone identifier: {s!r}") from ex


def local_now(now: dt.datetime, tz: dt.tzinfo | None = None) -> dt.datetime:
    if now.tzinfo is None:
        return now
    return now.astimezone(tz) if tz is not None else now.astimezone()


def today_key(now: dt.datetime, tz: dt.tzinfo | None = None) -> str:
    """Local calendar date of `now` as YYYY-MM-DD (never the UTC date)."""
    return local_now(now, tz).date().isoformat()


def parse_hhmm(raw: str | None) -> dt.time | None:
    s = (raw or "").strip()
    if not _HHMM_RE.match(s):
        return None
    hh, mm = int(s[:2]), int(s[3:])
    if hh > 23 or mm > 59:
        return None
    return dt.time(hh, mm)


def resolve_time(raw: str | None) -> dt.time:
    return parse_hhmm(raw) or DEFAULT_TIME


def parse_due(raw: str | None) -> dt.date | None:
    s = (raw or "").strip()
    if not s:
        return None
    try:
        return dt.date.fromisoformat(s)
    except ValueError:
        return None


def _combine(day: dt.date, at: dt.time, now: dt.datetime, tz: dt.tzinfo | None) -> dt.datetime:
    naive = dt.datetime.combine(day, at)
    if now.tzinfo is None:
        return naive
    if tz is None:
        # Naive -> system local, honouring the DST offset of that date.
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


def due_instant(
    task: Task,
    now: dt.datetime,
    tz: dt.tzinfo | None = None,
    *,
    strict_time: bool = False,
) -> dt.datetime | None:
    """
    Deadline of `task` as a datetime comparable with `now`.

    Malformed or missing times fall back to 09:00, unless strict_time is set,
    in which case they yield None.
    """
    day = parse_due(task.due)
    if day is None:
        return None
    if strict_time:
        at = parse_hhmm(task.time)
        if at is None:
            return None
    else:
        at = resolve_time(task.time)
    return _combine(day, at, now, tz)


def is_today(task: Task, today: str) -> bool:
    return bool(task.due) and task.due == today


def is_overdue(task: Task, today: str) -> bool:
    return bool(task.due) and task.due < today


def is_missed(
    task: Task,
    now: dt.datetime,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> bool:
    """Past due+time by more than the grace period, and neither done nor started."""
    if not task.due or not task.time:
        return False
    if task.done or task.started_at is not None:
        return False
    deadline = due_instant(task, now, tz, strict_time=True)
    if deadline is None:
        return False
    return local_now(now, tz) > deadline + dt.timedelta(minutes=max(0, grace_minutes))


def classify(
    task: Task,
    now: dt.datetime,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> TimeState:
    today = today_key(now, tz)
    return TimeState(
        is_today=is_today(task, today),
        is_overdue=is_overdue(task, today),
        is_missed=is_missed(task, now, grace_minutes=grace_minutes, tz=tz),
    )


def sort_key(
    task: Task,
    now: dt.datetime,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> tuple:
    """Missed first, then overdue, then today, then earliest due, then newest."""
    st = classify(task, now, grace_minutes=grace_minutes, tz=tz)
    # Tasks without a due date sort after dated ones inside the same bucket.
    due = task.due or "9999-12-31"
    return (not st.is_missed, not st.is_overdue, not st.is_today, due, -task.created_at)


def matches_filter(
    task: Task,
    name: str,
    now: dt.datetime,
    *,
    grace_minutes: int = DEFAULT_GRACE_MINUTES,
    tz: dt.tzinfo | None = None,
) -> bool:
    key = (name or "all").strip().lower()
    if key in (Priority.HIGH, Priority.MED, Priority.LOW):
        return task.priority == key
    if key == "overdue":
        return is_overdue(task, today_key(now, tz))
    if key == "today":
        return is_today(task, today_key(now, tz))
    if key == "missed":
        return is_missed(task, now, grace_minutes=grace_minutes, tz=tz)
    return True
