"""Notification channels (console toast, desktop notification, fan-out group)."""
