"""Per-event lifecycle handling for a bound Talk room."""

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from talkbridge.host import CalendarEvent, LifecycleEvent
from talkbridge.models import RoomType
from talkbridge.sync.body_block import description_payload
from talkbridge.sync.context import SyncContext
from talkbridge.sync.delegation import is_delegated_away, try_apply_delegation
from talkbridge.sync.participants import sync_participants
from talkbridge.sync.properties import (
    PropertyField,
    clear_all,
    parse_int,
    read_property,
    write_property,
)
from talkbridge.utils.handlers import guarded_handler
from talkbridge.utils.timestamps import build_object_id, to_unix_seconds

if TYPE_CHECKING:
    from talkbridge.sync.registry import SubscriptionRegistry

logger = logging.getLogger(__name__)


class SubscriptionState(str, Enum):
    ACTIVE = "active"
    DELETING = "deleting"
    DISPOSED = "disposed"


class Subscription:
    """
    Binds one calendar event object to one room token.

    Listens to the event's lifecycle notifications and keeps the room in
    step: lobby window, description, participants and delegation on every
    save; room deletion when the event is removed or abandoned unsaved.
    Remote failures are logged and surfaced as warnings; they never abort
    the notification or block the local operation.
    """

    def __init__(
        self,
        registry: "SubscriptionRegistry",
        ctx: SyncContext,
        event: CalendarEvent,
        key: str,
        token: str,
        lobby_enabled: bool,
        room_type: RoomType,
        identifier: Optional[str],
    ):
        self.registry = registry
        self.ctx = ctx
        self.event = event
        self.key = key
        self.token = token
        self.lobby_enabled = lobby_enabled
        self.room_type = room_type
        self.identifier = identifier
        self.room_deleted = False
        self.state = SubscriptionState.ACTIVE

        stored_start = parse_int(read_property(event, PropertyField.START_EPOCH))
        self.last_start_epoch: Optional[int] = (
            stored_start if stored_start is not None else to_unix_seconds(event.start)
        )

        self._handlers = {
            LifecycleEvent.CONTENT_CHANGED: self.on_content_changed,
            LifecycleEvent.ABOUT_TO_REMOVE: self.on_about_to_remove,
            LifecycleEvent.CLOSED_UNSAVED: self.on_closed_unsaved,
        }
        for kind, handler in self._handlers.items():
            event.subscribe(kind, handler)

        logger.info(
            f"Subscription registered (token={token}, lobby={lobby_enabled}, "
            f"type={room_type.value}, identifier={identifier})"
        )

    @property
    def disposed(self) -> bool:
        return self.state is SubscriptionState.DISPOSED

    @property
    def is_event_conversation(self) -> bool:
        return self.room_type.is_event

    def is_for(self, event: CalendarEvent) -> bool:
        return event is not None and event is self.event

    def matches_token(self, token: Optional[str]) -> bool:
        return bool(token) and token.strip().lower() == self.token.strip().lower()

    def update_identifier(self, identifier: Optional[str]) -> None:
        self.identifier = identifier
        logger.debug(f"Subscription identifier updated (token={self.token}, identifier={identifier})")

    # ------------------------------------------------------------------
    # Lifecycle handlers
    # ------------------------------------------------------------------

    @guarded_handler("content_changed")
    def on_content_changed(self) -> None:
        """The event was saved: push lobby, description, participants, delegation."""
        if self.disposed:
            return

        if not self.event.is_organizer:
            logger.debug(f"Content change ignored, not organizer (token={self.token})")
            self.registry.rebind_identifier(self)
            return

        delegate_id = is_delegated_away(self.ctx, self.event)
        if delegate_id:
            logger.debug(f"Content change not synced, room delegated to {delegate_id} (token={self.token})")
            self.registry.rebind_identifier(self)
            return

        logger.info(f"Syncing room {self.token} after event change")
        self._best_effort("lobby", self._sync_lobby)
        self._best_effort("description", self._sync_description)
        self._best_effort("participants", sync_participants, self.ctx, self.event, self.token)
        self._best_effort("delegation", try_apply_delegation, self.ctx, self.event, self.token)
        self.registry.rebind_identifier(self)

    @guarded_handler("about_to_remove")
    def on_about_to_remove(self) -> None:
        """The event is being deleted locally; the local delete always proceeds."""
        if self.disposed or not self.event.is_organizer:
            return

        logger.info(f"Event removal, deleting room {self.token}")
        self.ensure_room_deleted()

    @guarded_handler("closed_unsaved")
    def on_closed_unsaved(self) -> None:
        """The event was closed without saving its changes."""
        if self.disposed:
            return

        if not self.event.is_organizer:
            # Non-organizer edits were never committed; nothing remote to undo.
            self.dispose()
            return

        if not self.room_deleted and self.event.identifier is None:
            logger.info(f"Event abandoned before first save, deleting room {self.token}")
            self.ensure_room_deleted()
            clear_all(self.event)
            self.dispose()

    def ensure_room_deleted(self) -> bool:
        """Delete the remote room once; on success clear properties and dispose."""
        if self.room_deleted:
            logger.debug(f"Room {self.token} already deleted")
            return True

        self.state = SubscriptionState.DELETING
        result = self.ctx.room_service.delete_room(self.token, self.is_event_conversation)
        if not result.ok:
            self.state = SubscriptionState.ACTIVE
            logger.warning(f"Room {self.token} could not be deleted: {result.error}")
            self.ctx.notifier.warn(f"Talk room could not be deleted: {result.error}")
            return False

        self.room_deleted = True
        clear_all(self.event)
        logger.info(f"Room {self.token} deleted")
        self.dispose()
        return True

    def dispose(self) -> None:
        """Stop listening and leave the registry; later calls do nothing."""
        if self.disposed:
            logger.debug(f"Subscription already disposed (token={self.token})")
            return

        for kind, handler in self._handlers.items():
            self.event.unsubscribe(kind, handler)

        self.registry.unregister(self.key, self.token, self.identifier)
        self.state = SubscriptionState.DISPOSED
        logger.info(f"Subscription disposed (token={self.token})")

    # ------------------------------------------------------------------
    # Sync steps
    # ------------------------------------------------------------------

    def _best_effort(self, step: str, func: Callable[..., Any], *args: Any) -> None:
        try:
            func(*args)
        except Exception as e:
            logger.exception(f"Unexpected error during {step} sync for room {self.token}: {e}")

    def _sync_lobby(self) -> None:
        if not self.lobby_enabled:
            return

        current = to_unix_seconds(self.event.start)
        if current is None or current == self.last_start_epoch:
            return

        result = self.ctx.room_service.update_lobby(
            self.token, self.event.start, self.event.end, self.is_event_conversation
        )
        if not result.ok:
            # last_start_epoch stays put so the next save tries again
            logger.warning(f"Lobby update failed for room {self.token}: {result.error}")
            self.ctx.notifier.warn(f"Lobby time could not be updated: {result.error}")
            return

        self.last_start_epoch = current
        write_property(self.event, PropertyField.START_EPOCH, str(current))
        object_id = build_object_id(self.event.start, self.event.end)
        if object_id:
            write_property(self.event, PropertyField.OBJECT_ID, object_id)
        logger.info(f"Lobby of room {self.token} moved to {current}")

    def _sync_description(self) -> None:
        text = description_payload(self.event.body)
        result = self.ctx.room_service.update_description(self.token, text, self.is_event_conversation)
        if not result.ok:
            logger.warning(f"Description update failed for room {self.token}: {result.error}")
            self.ctx.notifier.warn(f"Room description could not be updated: {result.error}")
            return
        logger.debug(f"Description of room {self.token} updated ({len(text)} chars)")
