"""Host calendar contracts.

The sync engine never talks to a concrete calendar application. A host
adapter exposes each event through the CalendarEvent protocol and forwards
"item opened" / "list view opened" notifications to the discovery layer.
"""

from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, MutableMapping, Optional, Protocol, runtime_checkable

from talkbridge.models import Recipient

LifecycleCallback = Callable[[], None]


class LifecycleEvent(str, Enum):
    """Lifecycle notifications a host raises for a calendar event."""

    CONTENT_CHANGED = "content_changed"
    ABOUT_TO_REMOVE = "about_to_remove"
    CLOSED_UNSAVED = "closed_unsaved"


@runtime_checkable
class CalendarEvent(Protocol):
    """A calendar event owned by the host application."""

    subject: str
    start: datetime
    end: datetime
    body: str
    location: str
    recipients: list[Recipient]
    properties: MutableMapping[str, str]

    @property
    def identifier(self) -> Optional[str]:
        """Stable id; None until first persisted, may be reassigned."""
        ...

    @property
    def is_organizer(self) -> bool:
        """False only for a received copy of someone else's invitation."""
        ...

    def subscribe(self, kind: LifecycleEvent, callback: LifecycleCallback) -> None:
        ...

    def unsubscribe(self, kind: LifecycleEvent, callback: LifecycleCallback) -> None:
        ...


class ListView(Protocol):
    """A host list view (e.g. a calendar explorer) with a selection."""

    def selection(self) -> Iterable[object]:
        ...

    def subscribe_selection_changed(self, callback: LifecycleCallback) -> None:
        ...

    def unsubscribe_selection_changed(self, callback: LifecycleCallback) -> None:
        ...

    def subscribe_closed(self, callback: LifecycleCallback) -> None:
        ...

    def unsubscribe_closed(self, callback: LifecycleCallback) -> None:
        ...


class LifecycleHooks:
    """Callback registry host adapters can embed to implement subscribe/unsubscribe."""

    def __init__(self):
        self._callbacks: dict[LifecycleEvent, list[LifecycleCallback]] = {
            kind: [] for kind in LifecycleEvent
        }

    def subscribe(self, kind: LifecycleEvent, callback: LifecycleCallback) -> None:
        if callback not in self._callbacks[kind]:
            self._callbacks[kind].append(callback)

    def unsubscribe(self, kind: LifecycleEvent, callback: LifecycleCallback) -> None:
        if callback in self._callbacks[kind]:
            self._callbacks[kind].remove(callback)

    def subscriber_count(self, kind: LifecycleEvent) -> int:
        return len(self._callbacks[kind])

    def fire(self, kind: LifecycleEvent) -> None:
        """Run every callback for one notification, in subscription order."""
        # Copy: handlers may unsubscribe while running.
        for callback in list(self._callbacks[kind]):
            callback()
