# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from FOCUSFLOW_* environment variables, optionally via
a local .env file (gitignored). Real environment variables always win over .env.
"""

ENV_VARS = {
    # App / logging
    "FOCUSFLOW_APP_NAME": "App display name, also used as the desktop notification title (default: focusflow).",
    "FOCUSFLOW_LOG_LEVEL": "Console logging level (default: INFO). The log file always records DEBUG.",
    # Paths (gitignored)
    "FOCUSFLOW_DATA_DIR": "Local data directory (default: .local/focusflow).",
    "FOCUSFLOW_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "FOCUSFLOW_LEDGER_DB_PATH": "Fired-flag ledger SQLite path (default: <data_dir>/ledger.sqlite3).",
    # Deadline checks
    "FOCUSFLOW_TICK_SECONDS": "Seconds between periodic deadline scans (default: 10, minimum 0.5).",
    "FOCUSFLOW_REMINDER_GRACE_MINUTES": "Minutes after the deadline a reminder may still fire (default: 5).",
    "FOCUSFLOW_MISSED_GRACE_MINUTES": "Minutes after the deadline before a task counts as missed (default: 5).",
    "FOCUSFLOW_DEFAULT_REMIND_MINUTES": "Reminder lead for /add when remind= is omitted (default: 60).",
    "FOCUSFLOW_TIMEZONE": "'local', 'UTC', an offset like +02:00, or an IANA zone name (default: local).",
    # Delivery
    "FOCUSFLOW_DESKTOP_NOTIFICATIONS": "Send desktop notifications through plyer (true/false).",
    "FOCUSFLOW_TERMINAL_BELL": "Ring the terminal bell on reminders (true/false).",
    # Connectors
    "FOCUSFLOW_CONSOLE_ENABLED": "Enable the console REPL (true/false). Off means deadline checks only.",
}
