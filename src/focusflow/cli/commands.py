# src/focusflow/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, cast

from ..core.state import AppState
from ..tasks.task_models import Priority, Task
from ..tasks.time_state import FILTERS, classify, matches_filter, parse_due, parse_hhmm, sort_key

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----

_FIELD_ALIASES = {
    "due": "due",
    "date": "due",
    "time": "time",
    "at": "time",
    "remind": "remind_mins",
    "prio": "priority",
    "priority": "priority",
    "est": "estimate_mins",
    "estimate": "estimate_mins",
}


def parse_task_args(args: list[str]) -> tuple[str, dict[str, Any]]:
    """
    Split "Buy milk due=2024-01-01 time=10:00 remind=15 prio=high est=25"
    into ("Buy milk", {...}). Raises ValueError on bad values.
    """
    words: list[str] = []
    fields: dict[str, Any] = {}

    for token in args:
        key, sep, value = token.partition("=")
        field = _FIELD_ALIASES.get(key.lower()) if sep else None
        if field is None:
            words.append(token)
            continue

        value = value.strip()
        if field == "due":
            if value and parse_due(value) is None:
                raise ValueError(f"Bad date {value!r}; expected YYYY-MM-DD.")
            fields["due"] = value
        elif field == "time":
            if value and parse_hhmm(value) is None:
                raise ValueError(f"Bad time {value!r}; expected HH:MM.")
            fields["time"] = value
        elif field == "remind_mins":
            try:
                fields["remind_mins"] = max(0, int(value or 0))
            except ValueError as e:
                raise ValueError(f"Bad reminder minutes {value!r}.") from e
        elif field == "priority":
            if value.lower() not in {p.value for p in Priority}:
                raise ValueError(f"Bad priority {value!r}; use high, med or low.")
            fields["priority"] = Priority(value.lower())
        elif field == "estimate_mins":
            try:
                fields["estimate_mins"] = int(value) if value else None
            except ValueError as e:
                raise ValueError(f"Bad estimate {value!r}.") from e

    return " ".join(words).strip(), fields


def _resolve_task(state: AppState, raw_id: str) -> Task | str:
    """Find a task by id or unique id prefix; return an error message otherwise."""
    needle = (raw_id or "").strip().lower()
    if not needle:
        return "Missing task id."
    matches = [t for t in state.task_store.get_tasks() if t.id.lower().startswith(needle)]
    if not matches:
        return f"No task with id {raw_id!r}."
    exact = [t for t in matches if t.id.lower() == needle]
    if exact:
        return exact[0]
    if len(matches) > 1:
        return f"Id prefix {raw_id!r} is ambiguous ({len(matches)} tasks)."
    return matches[0]


def format_task(state: AppState, task: Task) -> str:
    now = state.clock.now()
    grace = int(getattr(state.settings, "missed_grace_minutes", 5))
    st = classify(task, now, grace_minutes=grace, tz=state.tz)

    chips: list[str] = []
    if st.is_missed:
        chips.append("MISSED")
    elif st.is_overdue:
        chips.append("overdue")
    elif st.is_today:
        chips.append("today")
    if task.started_at is not None:
        chips.append("started")

    when = " ".join(p for p in (task.due, task.time) if p)
    parts = [f"[{task.id}]", "[x]" if task.done else "[ ]", f"({task.priority.value})", task.title]
    if when:
        parts.append(f"@ {when}")
    if task.due:
        parts.append("remind at deadline" if not task.remind_mins else f"remind {task.remind_mins}m")
    if task.estimate_mins:
        parts.append(f"est {task.estimate_mins}m")
    if chips:
        parts.append("{" + ", ".join(chips) + "}")
    return " ".join(parts)


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """/add Title [due=YYYY-MM-DD] [time=HH:MM] [remind=N] [prio=high|med|low] [est=N]"""
    try:
        title, fields = parse_task_args(args)
    except ValueError as e:
        return str(e)
    if not title:
        return "Usage: /add Title [due=YYYY-MM-DD] [time=HH:MM] [remind=N] [prio=high|med|low] [est=N]"

    fields.setdefault("remind_mins", int(getattr(state.settings, "default_remind_minutes", 60)))
    task = state.task_store.add_task(title, **fields)
    logger.info("Task created id=%s", task.id)
    return f"Added {format_task(state, task)}"


def cmd_list(state: AppState, args: list[str]) -> str:
    """/list [all|high|med|low|overdue|today|missed]"""
    name = (args[0] if args else "all").lower()
    if name not in FILTERS:
        return f"Unknown filter {name!r}. Use one of: {', '.join(FILTERS)}."

    now = state.clock.now()
    grace = int(getattr(state.settings, "missed_grace_minutes", 5))
    tasks = state.task_store.get_tasks()

    open_tasks = [
        t for t in tasks if not t.done and matches_filter(t, name, now, grace_minutes=grace, tz=state.tz)
    ]
    open_tasks.sort(key=lambda t: sort_key(t, now, grace_minutes=grace, tz=state.tz))
    done = [t for t in tasks if t.done and matches_filter(t, name, now, grace_minutes=grace, tz=state.tz)]

    if not open_tasks and not done:
        return "No tasks."

    lines = [f"To do ({len(open_tasks)}):"]
    lines.extend(f"  {format_task(state, t)}" for t in open_tasks)
    if done:
        lines.append(f"Done ({len(done)}):")
        lines.extend(f"  {format_task(state, t)}" for t in done)
    return "\n".join(lines)


def cmd_done(state: AppState, args: list[str]) -> str:
    found = _resolve_task(state, args[0] if args else "")
    if isinstance(found, str):
        return found
    task = state.task_store.toggle_done(found.id)
    if task is None:
        return f"Task {found.id} disappeared."
    return f"{'Done' if task.done else 'Reopened'}: {task.title}"


def cmd_start(state: AppState, args: list[str]) -> str:
    found = _resolve_task(state, args[0] if args else "")
    if isinstance(found, str):
        return found
    already = found.started_at is not None
    task = state.task_store.start_task(found.id)
    if task is None:
        return f"Task {found.id} disappeared."
    est = f" (estimate {task.estimate_mins}m)" if task.estimate_mins else ""
    return f"{'Already started' if already else 'Started'}: {task.title}{est}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <id> [New title] [due=..] [time=..] [remind=..] [prio=..] [est=..]"""
    if not args:
        return "Usage: /edit <id> [title] [due=YYYY-MM-DD] [time=HH:MM] [remind=N] [prio=..] [est=N]"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    try:
        title, fields = parse_task_args(args[1:])
    except ValueError as e:
        return str(e)
    if title:
        fields["title"] = title
    if not fields:
        return "Nothing to change."
    state.task_store.patch_task(found.id, **fields)
    task = state.task_store.get_task(found.id)
    return f"Updated {format_task(state, task)}" if task else f"Task {found.id} disappeared."


def cmd_rm(state: AppState, args: list[str]) -> str:
    found = _resolve_task(state, args[0] if args else "")
    if isinstance(found, str):
        return found
    state.task_store.delete_task(found.id)
    return f"Deleted: {found.title}"


def cmd_clear(state: AppState, args: list[str]) -> str:
    n = state.task_store.clear_done()
    return f"Cleared {n} done task(s)."


def cmd_status(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.get_tasks()
    open_n = sum(1 for t in tasks if not t.done)
    evaluator = state.evaluator
    running = "ON" if evaluator is not None and evaluator.running else "OFF"
    try:
        notif = "ON" if state.notifier.is_available() else "OFF"
    except Exception:
        notif = "OFF"
    return (
        "Status:\n"
        f"  Tasks: {open_n} open / {len(tasks)} total\n"
        f"  Deadline checks: {running}\n"
        f"  Desktop notifications: {notif}\n"
        f"  Ledger entries: {state.ledger.count()}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: /add Title [due=YYYY-MM-DD] [time=HH:MM] [remind=N] [prio=high|med|low] [est=N].",
)
registry.register(
    "list", cmd_list, help_text="List tasks: /list [all|high|med|low|overdue|today|missed].", aliases=["ls"]
)
registry.register("done", cmd_done, help_text="Toggle done: /done <id>.")
registry.register("start", cmd_start, help_text="Start working on a task: /start <id>.")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> [title] [due=..] [time=..] [remind=..].")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["del"])
registry.register("clear", cmd_clear, help_text="Delete all done tasks.")
registry.register("status", cmd_status, help_text="Show task counts and notification state.")
