"""Per-event property bag access.

Room data lives in two parallel key namespaces on the event: portable
``X-NCTALK-*`` keys that travel with the invitation to other attendees, and
legacy local-only keys written by older versions. Reads prefer the portable
key; writes always update both.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from talkbridge.host import CalendarEvent
from talkbridge.models import RoomType

logger = logging.getLogger(__name__)

DATA_VERSION = 1

TRUE_TEXT = "TRUE"
FALSE_TEXT = "FALSE"


class PropertyField(Enum):
    """Logical room fields as (portable key, legacy key)."""

    TOKEN = ("X-NCTALK-TOKEN", "NcTalkRoomToken")
    URL = ("X-NCTALK-URL", None)
    ROOM_TYPE = ("X-NCTALK-EVENT", "NcTalkRoomType")
    LOBBY = ("X-NCTALK-LOBBY", "NcTalkLobbyEnabled")
    SEARCH_VISIBLE = (None, "NcTalkSearchVisible")
    PASSWORD_SET = (None, "NcTalkPasswordSet")
    START_EPOCH = ("X-NCTALK-START", "NcTalkStartEpoch")
    DATA_VERSION = (None, "NcTalkDataVersion")
    ADD_USERS = ("X-NCTALK-ADD-USERS", "NcTalkAddUsers")
    ADD_GUESTS = ("X-NCTALK-ADD-GUESTS", "NcTalkAddGuests")
    ADD_PARTICIPANTS = ("X-NCTALK-ADD-PARTICIPANTS", None)
    DELEGATE_ID = ("X-NCTALK-DELEGATE", "NcTalkDelegateId")
    DELEGATE_NAME = ("X-NCTALK-DELEGATE-NAME", None)
    DELEGATED = ("X-NCTALK-DELEGATED", "NcTalkDelegated")
    DELEGATE_READY = ("X-NCTALK-DELEGATE-READY", None)
    OBJECT_ID = ("X-NCTALK-OBJECTID", None)

    @property
    def portable_key(self) -> Optional[str]:
        return self.value[0]

    @property
    def legacy_key(self) -> Optional[str]:
        return self.value[1]

    @property
    def keys(self) -> tuple[str, ...]:
        return tuple(key for key in self.value if key)


DELEGATION_FIELDS = (
    PropertyField.DELEGATE_ID,
    PropertyField.DELEGATE_NAME,
    PropertyField.DELEGATED,
    PropertyField.DELEGATE_READY,
)


def read_property(event: CalendarEvent, field: PropertyField) -> Optional[str]:
    """Read a field: portable key first, then legacy key, else None."""
    for key in field.keys:
        value = event.properties.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def write_property(event: CalendarEvent, field: PropertyField, value: Optional[str]) -> None:
    """Write the same value under every key of a field; None removes it."""
    if value is None:
        remove_property(event, field)
        return
    for key in field.keys:
        event.properties[key] = value


def remove_property(event: CalendarEvent, field: PropertyField) -> None:
    for key in field.keys:
        event.properties.pop(key, None)


def clear_all(event: CalendarEvent) -> None:
    """Remove every room key from both namespaces."""
    for field in PropertyField:
        remove_property(event, field)
    logger.debug("Cleared room properties from event")


# ---------------------------------------------------------------------------
# Text codecs
# ---------------------------------------------------------------------------


def format_bool(value: bool) -> str:
    return TRUE_TEXT if value else FALSE_TEXT


def parse_bool(text: Optional[str]) -> Optional[bool]:
    """Lenient boolean parsing; None when absent or unrecognised."""
    if text is None:
        return None
    normalized = text.strip().lower()
    if normalized in ("true", "yes", "1"):
        return True
    if normalized in ("false", "no", "0"):
        return False
    try:
        return int(normalized) != 0
    except ValueError:
        return None


def parse_int(text: Optional[str]) -> Optional[int]:
    if text is None:
        return None
    try:
        return int(text.strip())
    except ValueError:
        return None


def parse_room_type(text: Optional[str]) -> Optional[RoomType]:
    if text is None:
        return None
    normalized = text.strip().lower()
    for room_type in RoomType:
        if room_type.value.lower() == normalized:
            return room_type
    # X-NCTALK-EVENT written by other clients as a plain flag
    flag = parse_bool(text)
    if flag is None:
        return None
    return RoomType.EVENT_CONVERSATION if flag else RoomType.STANDARD_ROOM


def read_bool(event: CalendarEvent, field: PropertyField) -> Optional[bool]:
    return parse_bool(read_property(event, field))


def write_bool(event: CalendarEvent, field: PropertyField, value: bool) -> None:
    write_property(event, field, format_bool(value))


# ---------------------------------------------------------------------------
# Typed view
# ---------------------------------------------------------------------------


@dataclass
class RoomProperties:
    """Typed snapshot of every room field stored on an event."""

    token: Optional[str] = None
    url: Optional[str] = None
    room_type: Optional[RoomType] = None
    lobby_enabled: Optional[bool] = None
    search_visible: Optional[bool] = None
    password_set: Optional[bool] = None
    start_epoch: Optional[int] = None
    data_version: Optional[int] = None
    add_users: Optional[bool] = None
    add_guests: Optional[bool] = None
    add_participants: Optional[bool] = None
    delegate_id: Optional[str] = None
    delegate_name: Optional[str] = None
    delegated: Optional[bool] = None
    delegate_ready: Optional[bool] = None
    object_id: Optional[str] = None

    @property
    def is_event_conversation(self) -> bool:
        return self.room_type is RoomType.EVENT_CONVERSATION


def read_room_properties(event: CalendarEvent) -> RoomProperties:
    """Parse all room fields of an event into a RoomProperties."""
    return RoomProperties(
        token=read_property(event, PropertyField.TOKEN),
        url=read_property(event, PropertyField.URL),
        room_type=parse_room_type(read_property(event, PropertyField.ROOM_TYPE)),
        lobby_enabled=read_bool(event, PropertyField.LOBBY),
        search_visible=read_bool(event, PropertyField.SEARCH_VISIBLE),
        password_set=read_bool(event, PropertyField.PASSWORD_SET),
        start_epoch=parse_int(read_property(event, PropertyField.START_EPOCH)),
        data_version=parse_int(read_property(event, PropertyField.DATA_VERSION)),
        add_users=read_bool(event, PropertyField.ADD_USERS),
        add_guests=read_bool(event, PropertyField.ADD_GUESTS),
        add_participants=read_bool(event, PropertyField.ADD_PARTICIPANTS),
        delegate_id=read_property(event, PropertyField.DELEGATE_ID),
        delegate_name=read_property(event, PropertyField.DELEGATE_NAME),
        delegated=read_bool(event, PropertyField.DELEGATED),
        delegate_ready=read_bool(event, PropertyField.DELEGATE_READY),
        object_id=read_property(event, PropertyField.OBJECT_ID),
    )


def write_room_properties(event: CalendarEvent, props: RoomProperties) -> None:
    """Write every set (non-None) field of a RoomProperties to the event."""
    text_fields = {
        PropertyField.TOKEN: props.token,
        PropertyField.URL: props.url,
        PropertyField.ROOM_TYPE: props.room_type.value if props.room_type else None,
        PropertyField.START_EPOCH: str(props.start_epoch) if props.start_epoch is not None else None,
        PropertyField.DATA_VERSION: str(props.data_version) if props.data_version is not None else None,
        PropertyField.DELEGATE_ID: props.delegate_id,
        PropertyField.DELEGATE_NAME: props.delegate_name,
        PropertyField.OBJECT_ID: props.object_id,
    }
    bool_fields = {
        PropertyField.LOBBY: props.lobby_enabled,
        PropertyField.SEARCH_VISIBLE: props.search_visible,
        PropertyField.PASSWORD_SET: props.password_set,
        PropertyField.ADD_USERS: props.add_users,
        PropertyField.ADD_GUESTS: props.add_guests,
        PropertyField.ADD_PARTICIPANTS: props.add_participants,
        PropertyField.DELEGATED: props.delegated,
        PropertyField.DELEGATE_READY: props.delegate_ready,
    }

    for field, value in text_fields.items():
        if value is not None:
            write_property(event, field, value)
    for field, flag in bool_fields.items():
        if flag is not None:
            write_bool(event, field, flag)
