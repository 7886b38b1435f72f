"""Room service contract consumed by the sync engine."""

from datetime import datetime
from typing import Protocol

from talkbridge.models import Participant, RoomCreationResult, RoomRequest
from talkbridge.talk.errors import RoomResult


class RoomService(Protocol):
    """
    Stateless room operations of the remote collaboration server.

    Every call returns a RoomResult instead of raising; "already a
    participant" and "already a moderator" outcomes count as success.
    """

    def create_room(self, request: RoomRequest) -> RoomResult[RoomCreationResult]:
        ...

    def delete_room(self, token: str, is_event: bool) -> RoomResult[None]:
        ...

    def update_lobby(
        self, token: str, start: datetime, end: datetime, is_event: bool
    ) -> RoomResult[None]:
        ...

    def update_description(self, token: str, text: str, is_event: bool) -> RoomResult[None]:
        ...

    def add_user_participant(self, token: str, user_id: str) -> RoomResult[None]:
        ...

    def add_guest_participant(self, token: str, email: str) -> RoomResult[None]:
        ...

    def get_participants(self, token: str) -> RoomResult[list[Participant]]:
        ...

    def promote_moderator(self, token: str, attendee_id: int) -> RoomResult[None]:
        ...

    def leave_room(self, token: str) -> RoomResult[None]:
        ...
