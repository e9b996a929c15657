# src/focusflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every value has a local default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FOCUSFLOW"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    ledger_db_path: Path

    # ---- Evaluator tuning ----
    tick_seconds: float
    reminder_grace_minutes: int
    missed_grace_minutes: int
    default_remind_minutes: int
    timezone: str

    # ---- Delivery channels ----
    desktop_notifications: bool
    terminal_bell: bool

    # ---- Connectors ----
    console_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "focusflow").strip() or "focusflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/focusflow"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        ledger_db_path = _env_path(_k("LEDGER_DB_PATH"), data_dir / "ledger.sqlite3")

        # Grace windows may be tuned independently; both default to 5 minutes.
        tick_seconds = max(0.5, _env_float(_k("TICK_SECONDS"), 10.0))
        reminder_grace_minutes = max(0, _env_int(_k("REMINDER_GRACE_MINUTES"), 5))
        missed_grace_minutes = max(0, _env_int(_k("MISSED_GRACE_MINUTES"), 5))
        default_remind_minutes = max(0, _env_int(_k("DEFAULT_REMIND_MINUTES"), 60))
        timezone = _env(_k("TIMEZONE"), "local").strip() or "local"

        desktop_notifications = _env_bool(_k("DESKTOP_NOTIFICATIONS"), True)
        terminal_bell = _env_bool(_k("TERMINAL_BELL"), True)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            ledger_db_path=ledger_db_path,
            tick_seconds=tick_seconds,
            reminder_grace_minutes=reminder_grace_minutes,
            missed_grace_minutes=missed_grace_minutes,
            default_remind_minutes=default_remind_minutes,
            timezone=timezone,
            desktop_notifications=desktop_notifications,
            terminal_bell=terminal_bell,
            console_enabled=console_enabled,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load settings once (reads .env on first call, never overrides real env vars)."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
