"""Host entry point wiring settings, services and the sync engine."""

import logging
import sys
from typing import Iterable, Optional

from talkbridge.alerts.notifier import LogNotifier, Notifier
from talkbridge.config import Settings, get_settings
from talkbridge.directory import DirectoryFactory
from talkbridge.host import CalendarEvent, ListView
from talkbridge.models import RoomCreationResult, RoomRequest
from talkbridge.sync.context import SyncContext
from talkbridge.sync.discovery import SubscriptionDiscovery
from talkbridge.sync.registry import SubscriptionRegistry
from talkbridge.sync.rooms import create_room
from talkbridge.talk.client import TalkRoomClient
from talkbridge.talk.errors import RoomResult
from talkbridge.talk.service import RoomService

logger = logging.getLogger(__name__)


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure root logging the way the host add-in expects."""
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class TalkBridge:
    """One instance per host session."""

    def __init__(
        self,
        room_service: RoomService,
        directory_factory: DirectoryFactory,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.settings = settings or get_settings()
        self.context = SyncContext(
            room_service=room_service,
            directory=directory_factory(self.settings.directory_cache_hours),
            current_user_id=self.settings.current_user_id(),
            notifier=notifier or LogNotifier(),
            language=self.settings.language,
            body_block_search_lines=self.settings.body_block_search_lines,
        )
        self.registry = SubscriptionRegistry(self.context)
        self.discovery = SubscriptionDiscovery(self.registry)

    @classmethod
    def from_settings(
        cls,
        directory_factory: DirectoryFactory,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
    ) -> "TalkBridge":
        """Build a bridge talking to the configured Nextcloud server."""
        settings = settings or get_settings()
        return cls(TalkRoomClient(settings), directory_factory, settings, notifier)

    def start(self, existing_events: Iterable[object] = ()) -> dict:
        """Attach subscriptions to events left over from earlier sessions."""
        logger.info("Starting TalkBridge...")
        logger.info(f"Server: {self.settings.normalized_server_url() or '(not configured)'}")
        if not self.settings.is_complete():
            logger.warning("Credentials incomplete; room calls will fail until settings are completed")
        return self.discovery.scan_existing(existing_events)

    def create_room(self, event: CalendarEvent, request: RoomRequest) -> RoomResult[RoomCreationResult]:
        return create_room(self.context, self.registry, event, request)

    def on_item_opened(self, item: object) -> None:
        self.discovery.on_item_opened(item)

    def watch_view(self, view: ListView) -> None:
        self.discovery.watch_view(view)

    def shutdown(self) -> None:
        logger.info("Shutting down TalkBridge...")
        self.discovery.close()
        self.registry.dispose_all()
        close = getattr(self.context.room_service, "close", None)
        if callable(close):
            close()
