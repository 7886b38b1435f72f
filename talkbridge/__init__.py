"""TalkBridge: keeps Nextcloud Talk rooms in step with calendar events."""

__version__ = "0.1.0"
