"""Active event/room bindings."""

import logging
import uuid
from typing import Iterator, Optional

from talkbridge.host import CalendarEvent
from talkbridge.models import RoomType
from talkbridge.sync.context import SyncContext
from talkbridge.sync.subscription import Subscription

logger = logging.getLogger(__name__)


def _index_key(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    return normalized or None


class SubscriptionRegistry:
    """
    Owns every live Subscription.

    Subscriptions are stored once, by key; tokens and event identifiers are
    secondary indexes onto that key. At most one live subscription exists
    per token and per identifier.
    """

    def __init__(self, ctx: SyncContext):
        self.ctx = ctx
        self._subscriptions: dict[str, Subscription] = {}
        self._key_by_token: dict[str, str] = {}
        self._key_by_identifier: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __iter__(self) -> Iterator[Subscription]:
        return iter(list(self._subscriptions.values()))

    def get(self, key: str) -> Optional[Subscription]:
        return self._subscriptions.get(key)

    def find_by_token(self, token: Optional[str]) -> Optional[Subscription]:
        index = _index_key(token)
        if index is None:
            return None
        key = self._key_by_token.get(index)
        return self._subscriptions.get(key) if key else None

    def find_by_identifier(self, identifier: Optional[str]) -> Optional[Subscription]:
        index = _index_key(identifier)
        if index is None:
            return None
        key = self._key_by_identifier.get(index)
        return self._subscriptions.get(key) if key else None

    def find_by_event(self, event: CalendarEvent) -> Optional[Subscription]:
        for subscription in self._subscriptions.values():
            if subscription.is_for(event):
                return subscription
        return None

    def register(
        self,
        event: CalendarEvent,
        token: str,
        lobby_enabled: bool,
        room_type: RoomType,
    ) -> Subscription:
        """
        Bind an event to a room token.

        Returns the existing subscription when this exact event is already
        bound under the same identifier or token. A subscription of another
        event holding the identifier (reassigned) or the token (ownership
        moved) is disposed first.
        """
        if not token or not token.strip():
            raise ValueError("A room token is required to register a subscription")

        token = token.strip()
        logger.info(f"Registering subscription (token={token}, lobby={lobby_enabled}, type={room_type.value})")

        identifier = event.identifier
        existing = self.find_by_identifier(identifier)
        if existing:
            if existing.is_for(event):
                return existing
            logger.info(f"Identifier {identifier} reused, disposing subscription for room {existing.token}")
            existing.dispose()

        existing = self.find_by_token(token)
        if existing:
            if existing.is_for(event):
                return existing
            logger.info(f"Room {token} claimed by another event, disposing previous subscription")
            existing.dispose()

        key = uuid.uuid4().hex
        subscription = Subscription(
            registry=self,
            ctx=self.ctx,
            event=event,
            key=key,
            token=token,
            lobby_enabled=lobby_enabled,
            room_type=room_type,
            identifier=identifier,
        )
        self._subscriptions[key] = subscription
        self._key_by_token[_index_key(token)] = key
        if _index_key(identifier):
            self._key_by_identifier[_index_key(identifier)] = key
        return subscription

    def rebind_identifier(self, subscription: Subscription) -> None:
        """
        Re-index a subscription after its event's identifier changed.

        New events get an identifier on first save and hosts may reassign
        it later (e.g. on a folder move).
        """
        old_identifier = subscription.identifier
        new_identifier = subscription.event.identifier
        if _index_key(old_identifier) == _index_key(new_identifier):
            return

        old_index = _index_key(old_identifier)
        if old_index and self._key_by_identifier.get(old_index) == subscription.key:
            del self._key_by_identifier[old_index]

        subscription.update_identifier(new_identifier)

        new_index = _index_key(new_identifier)
        if not new_index:
            return

        other = self.find_by_identifier(new_identifier)
        if other and other is not subscription:
            logger.info(f"Identifier {new_identifier} already bound to room {other.token}, disposing it")
            other.dispose()

        self._key_by_identifier[new_index] = subscription.key

    def unregister(self, key: str, token: Optional[str], identifier: Optional[str]) -> None:
        """Drop a subscription and its index entries; unknown keys are ignored."""
        logger.debug(f"Unregistering subscription (token={token}, identifier={identifier})")
        self._subscriptions.pop(key, None)

        token_index = _index_key(token)
        if token_index and self._key_by_token.get(token_index) == key:
            del self._key_by_token[token_index]

        identifier_index = _index_key(identifier)
        if identifier_index and self._key_by_identifier.get(identifier_index) == key:
            del self._key_by_identifier[identifier_index]

    def dispose_all(self) -> None:
        """Dispose every live subscription (shutdown)."""
        for subscription in list(self._subscriptions.values()):
            subscription.dispose()
        logger.info("All subscriptions disposed")
