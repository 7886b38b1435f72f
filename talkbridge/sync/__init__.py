"""Event-to-room sync engine."""

from talkbridge.sync.context import SyncContext
from talkbridge.sync.discovery import SubscriptionDiscovery
from talkbridge.sync.registry import SubscriptionRegistry
from talkbridge.sync.rooms import create_room
from talkbridge.sync.subscription import Subscription, SubscriptionState

__all__ = [
    "SyncContext",
    "SubscriptionDiscovery",
    "SubscriptionRegistry",
    "Subscription",
    "SubscriptionState",
    "create_room",
]
