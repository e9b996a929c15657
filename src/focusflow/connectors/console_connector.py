# src/focusflow/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = ">>> "
_CHUNK = 4096


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class _LineReader:
    """
    Line reader over a raw file descriptor that never blocks the loop.

    Bytes are read with os.read and split here, so several lines arriving in one chunk
    (piped input) are all delivered without waiting for more data. Loops without
    add_reader support fall back to a daemon thread, which never holds up shutdown.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, fd: int | None = None) -> None:
        self._loop = loop
        self._fd = fd
        self._buf = b""
        self._eof = False

    def _fileno(self) -> int | None:
        if self._fd is not None:
            return self._fd
        try:
            return sys.stdin.fileno()
        except (AttributeError, OSError, ValueError):
            return None

    async def _read_chunk(self) -> bytes:
        fd = self._fileno()
        fut: asyncio.Future[bytes] = self._loop.create_future()

        if fd is not None:

            def _ready() -> None:
                if fut.done():
                    return
                try:
                    fut.set_result(os.read(fd, _CHUNK))
                except OSError as exc:
                    fut.set_exception(exc)

            try:
                self._loop.add_reader(fd, _ready)
            except (NotImplementedError, OSError, ValueError):
                pass
            else:
                try:
                    return await fut
                finally:
                    self._loop.remove_reader(fd)

        def _blocking() -> None:
            try:
                if fd is not None:
                    data = os.read(fd, _CHUNK)
                else:
                    data = sys.stdin.readline().encode()
            except Exception as exc:
                self._loop.call_soon_threadsafe(_set_exception, exc)
            else:
                self._loop.call_soon_threadsafe(_set_result, data)

        def _set_result(data: bytes) -> None:
            if not fut.done():
                fut.set_result(data)

        def _set_exception(exc: BaseException) -> None:
            if not fut.done():
                fut.set_exception(exc)

        threading.Thread(target=_blocking, name="stdin-reader", daemon=True).start()
        return await fut

    async def readline(self) -> str:
        """Next line including its newline; raises EOFError at end of input."""
        while b"\n" not in self._buf and not self._eof:
            chunk = await self._read_chunk()
            if chunk:
                self._buf += chunk
            else:
                self._eof = True

        if b"\n" in self._buf:
            line, _, self._buf = self._buf.partition(b"\n")
            return line.decode("utf-8", errors="replace") + "\n"
        if self._buf:
            line, self._buf = self._buf, b""
            return line.decode("utf-8", errors="replace")
        raise EOFError


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL on the event loop.

    stdin is read without blocking the loop; commands run back on the loop thread, so
    store mutations never overlap a deadline scan. Waiting for input counts as the
    view losing focus, a submitted line as it regaining focus.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands. Use /exit to quit.\n")

    reader = _LineReader(asyncio.get_running_loop())

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        state.signals.emit_focus_lost()
        try:
            print(PROMPT, end="", flush=True)
            user_input = (await reader.readline()).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        state.signals.emit_focus_gained()

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            response = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is None:
            # Plain text is a quick add.
            response = command_registry.handle(state, f"/add {user_input}", emit=emit)

        if response:
            _print_ts(response)

    logger.info("Console connector finished.")
