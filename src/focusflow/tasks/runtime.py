# src/focusflow/tasks/runtime.py

"""
Runtime adapters for the evaluator: wall clock, asyncio-backed timer, view signals.

Everything here runs callbacks on the event-loop thread, so a scan never overlaps
a store mutation or another scan.
"""

from __future__ import annotations

import asyncio
import contextlib
import datetime as dt
import logging

from ..core.ports import Callback, Unsubscribe

logger = logging.getLogger(__name__)


class SystemClock:
    def __init__(self, tz: dt.tzinfo | None = None) -> None:
        self._tz = tz

    def now(self) -> dt.datetime:
        if self._tz is not None:
            return dt.datetime.now(tz=self._tz)
        return dt.datetime.now().astimezone()


class _Periodic:
    """Self-rescheduling call_later chain; cancel() stops it for good."""

    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callback) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False

    def start(self) -> _Periodic:
        self._handle = self._loop.call_later(self._interval, self._run)
        return self

    def _run(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception:
            logger.exception("Periodic callback failed")
        finally:
            if not self._cancelled:
                self._handle = self._loop.call_later(self._interval, self._run)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioTimer:
    """Timer port on top of an asyncio loop (the running loop when none is given)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def schedule_periodic(self, interval: float, callback: Callback) -> _Periodic:
        return _Periodic(self._get_loop(), max(0.01, float(interval)), callback).start()

    def call_soon(self, callback: Callback) -> asyncio.Handle:
        return self._get_loop().call_soon(callback)


class ViewSignals:
    """
    In-process hub for view edge triggers (visibility restored, focus gained/lost).

    Connectors emit; the evaluator subscribes. Listener errors are logged and dropped.
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callback]] = {
            "visibility_restored": [],
            "focus_gained": [],
            "focus_lost": [],
        }

    def _subscribe(self, name: str, callback: Callback) -> Unsubscribe:
        bucket = self._listeners[name]
        bucket.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                bucket.remove(callback)

        return _unsubscribe

    def _emit(self, name: str) -> None:
        for cb in list(self._listeners[name]):
            try:
                cb()
            except Exception:
                logger.exception("ViewSignals listener failed signal=%s", name)

    def listener_count(self) -> int:
        return sum(len(v) for v in self._listeners.values())

    def on_visibility_restored(self, callback: Callback) -> Unsubscribe:
        return self._subscribe("visibility_restored", callback)

    def on_focus_gained(self, callback: Callback) -> Unsubscribe:
        return self._subscribe("focus_gained", callback)

    def on_focus_lost(self, callback: Callback) -> Unsubscribe:
        return self._subscribe("focus_lost", callback)

    def emit_visibility_restored(self) -> None:
        self._emit("visibility_restored")

    def emit_focus_gained(self) -> None:
        self._emit("focus_gained")

    def emit_focus_lost(self) -> None:
        self._emit("focus_lost")
