"""Value objects shared by the room service and the sync engine."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

ACTOR_TYPE_USERS = "users"
ACTOR_TYPE_EMAILS = "emails"


class RoomType(str, Enum):
    """Room flavours supported by the Talk API."""

    EVENT_CONVERSATION = "EventConversation"
    STANDARD_ROOM = "StandardRoom"

    @property
    def is_event(self) -> bool:
        return self is RoomType.EVENT_CONVERSATION


class RecipientRole(str, Enum):
    """Role of a recipient on a calendar event."""

    ORGANIZER = "organizer"
    REQUIRED = "required"
    OPTIONAL = "optional"
    RESOURCE = "resource"


class Recipient(BaseModel):
    """A single attendee entry of a calendar event."""
    email: str
    role: RecipientRole = RecipientRole.REQUIRED
    display_name: Optional[str] = None


class RoomRequest(BaseModel):
    """User input for creating a Talk room."""
    title: str = ""
    password: Optional[str] = None
    lobby_enabled: bool = False
    search_visible: bool = False
    room_type: RoomType = RoomType.STANDARD_ROOM
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    description: str = ""
    add_users: bool = False
    add_guests: bool = False
    delegate_id: Optional[str] = None
    delegate_name: Optional[str] = None

    @property
    def has_password(self) -> bool:
        return bool(self.password and self.password.strip())


class RoomCreationResult(BaseModel):
    """Result data of a successfully created Talk room."""
    token: str
    url: str
    room_type: RoomType
    lobby_enabled: bool = False
    search_visible: bool = False


class Participant(BaseModel):
    """Minimal Talk participant (actor type/id plus attendee id)."""
    actor_type: str = ""
    actor_id: str = ""
    attendee_id: int = 0
