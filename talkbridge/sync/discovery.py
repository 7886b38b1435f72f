"""Re-attach subscriptions to events that already carry a room."""

import logging
from typing import Iterable, Optional

from talkbridge.host import CalendarEvent, ListView
from talkbridge.models import RoomType
from talkbridge.sync.properties import read_room_properties
from talkbridge.sync.registry import SubscriptionRegistry
from talkbridge.sync.subscription import Subscription

logger = logging.getLogger(__name__)


def _as_event(item: object) -> Optional[CalendarEvent]:
    return item if isinstance(item, CalendarEvent) else None


class ViewWatcher:
    """Checks the selection of one list view every time it changes."""

    def __init__(self, discovery: "SubscriptionDiscovery", view: ListView):
        self.discovery = discovery
        self.view = view
        self.closed = False
        view.subscribe_selection_changed(self.on_selection_changed)
        view.subscribe_closed(self.on_closed)

    def on_selection_changed(self) -> None:
        if self.closed:
            return
        try:
            items = list(self.view.selection())
        except Exception as e:
            logger.warning(f"Could not read view selection: {e}")
            return
        for item in items:
            self.discovery.on_item_opened(item)

    def on_closed(self) -> None:
        if self.closed:
            return
        self.view.unsubscribe_selection_changed(self.on_selection_changed)
        self.view.unsubscribe_closed(self.on_closed)
        self.closed = True
        self.discovery.forget_view(self)


class SubscriptionDiscovery:
    """
    Finds events with a room token but no live subscription.

    Covers events from a previous session and copies re-opened after an
    external edit. Sources: opened items, selections in open list views and
    one scan of existing events at startup.
    """

    def __init__(self, registry: SubscriptionRegistry):
        self.registry = registry
        self.watchers: list[ViewWatcher] = []
        self.initial_scan_performed = False

    def ensure_subscription(self, event: CalendarEvent) -> Optional[Subscription]:
        """Register the event if it carries a token; returns the live subscription."""
        props = read_room_properties(event)
        token = props.token
        if not token:
            return None

        existing = self.registry.find_by_identifier(event.identifier)
        if existing:
            if existing.is_for(event) and existing.matches_token(token):
                return existing
            existing.dispose()

        existing = self.registry.find_by_token(token)
        if existing:
            if existing.is_for(event):
                return existing
            existing.dispose()

        # Same event object still bound to a room it no longer carries
        stale = self.registry.find_by_event(event)
        if stale:
            stale.dispose()

        room_type = props.room_type or RoomType.STANDARD_ROOM
        return self.registry.register(event, token, bool(props.lobby_enabled), room_type)

    def on_item_opened(self, item: object) -> None:
        event = _as_event(item)
        if event is None:
            return
        try:
            self.ensure_subscription(event)
        except Exception as e:
            logger.warning(f"Could not attach subscription to opened item: {e}")

    def watch_view(self, view: ListView) -> ViewWatcher:
        for watcher in self.watchers:
            if watcher.view is view:
                return watcher
        watcher = ViewWatcher(self, view)
        self.watchers.append(watcher)
        return watcher

    def forget_view(self, watcher: ViewWatcher) -> None:
        if watcher in self.watchers:
            self.watchers.remove(watcher)

    def scan_existing(self, events: Iterable[object]) -> dict:
        """One-time startup scan over existing calendar items."""
        summary = {"scanned": 0, "attached": 0, "errors": 0}
        if self.initial_scan_performed:
            return summary

        try:
            for item in events:
                event = _as_event(item)
                if event is None:
                    continue
                summary["scanned"] += 1
                try:
                    if self.ensure_subscription(event):
                        summary["attached"] += 1
                except Exception as e:
                    logger.warning(f"Startup scan skipped an event: {e}")
                    summary["errors"] += 1
        finally:
            self.initial_scan_performed = True

        logger.info(f"Startup scan completed: {summary}")
        return summary

    def close(self) -> None:
        for watcher in list(self.watchers):
            watcher.on_closed()
