# src/focusflow/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs on one asyncio loop:
- the deadline evaluator (periodic tick + view/store triggers),
- the console REPL.

SIGCONT (process resumed after Ctrl+Z) is treated as the view becoming visible again.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import build_evaluator, create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        if state.evaluator is not None:
            state.evaluator.stop()
    except Exception:
        logger.exception("Failed to stop the deadline evaluator.")

    # Stores use short-lived sqlite connections per call; close() is a compatibility hook.
    for name in ("task_store", "ledger"):
        try:
            getattr(state, name).close()
        except Exception:
            logger.debug("%s close failed.", name, exc_info=True)


async def _run(state: AppState) -> None:
    loop = asyncio.get_running_loop()
    evaluator = build_evaluator(state, loop=loop)

    stop_main = asyncio.Event()
    console = None

    def _handle_stop(signum: int) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()
        if console is not None:
            console.cancel()

    for signum in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, AttributeError, ValueError):
            loop.add_signal_handler(signum, _handle_stop, signum)
    with contextlib.suppress(NotImplementedError, AttributeError, ValueError):
        loop.add_signal_handler(signal.SIGCONT, state.signals.emit_visibility_restored)

    evaluator.start()
    try:
        if state.settings.console_enabled:
            console = asyncio.ensure_future(run_console_loop(state))
            with contextlib.suppress(asyncio.CancelledError):
                await console
        else:
            logger.info("Console disabled. Running deadline checks only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        evaluator.stop()


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)
    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted.")
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
