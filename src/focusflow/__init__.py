"""FocusFlow: local tasks with exactly-once deadline reminders and missed-task escalation."""

__version__ = "0.1.0"
