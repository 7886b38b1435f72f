"""Collaborators shared by every subscription."""

from dataclasses import dataclass, field
from typing import Optional

from talkbridge.alerts.notifier import LogNotifier, Notifier
from talkbridge.directory import DirectoryCache
from talkbridge.sync.body_block import DEFAULT_SEARCH_LINES
from talkbridge.talk.service import RoomService


@dataclass
class SyncContext:
    """Room service, directory and identity the sync engine works with."""

    room_service: RoomService
    directory: DirectoryCache
    current_user_id: Optional[str]
    notifier: Notifier = field(default_factory=LogNotifier)
    language: str = "en"
    body_block_search_lines: int = DEFAULT_SEARCH_LINES

    def is_current_user(self, user_id: Optional[str]) -> bool:
        if not user_id or not self.current_user_id:
            return False
        return user_id.strip().lower() == self.current_user_id.strip().lower()
