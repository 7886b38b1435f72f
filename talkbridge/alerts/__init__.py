"""User-facing notifications."""

from talkbridge.alerts.notifier import LogNotifier, Notifier

__all__ = ["LogNotifier", "Notifier"]
