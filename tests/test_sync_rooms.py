"""Tests for talkbridge/sync/rooms.py (room creation and replacement)."""

from __future__ import annotations

from talkbridge.models import RoomRequest, RoomType
from talkbridge.sync.body_block import BLOCK_HEADER
from talkbridge.sync.properties import (
    DATA_VERSION,
    PropertyField,
    RoomProperties,
    read_property,
    read_room_properties,
    write_room_properties,
)
from talkbridge.sync.rooms import create_room

SPRINT_REQUEST = RoomRequest(
    title="Sprint Planning",
    password="x7Gh2Kq9",
    lobby_enabled=True,
    room_type=RoomType.EVENT_CONVERSATION,
    add_users=True,
    add_guests=False,
)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateRoom:
    def test_sprint_planning(self, ctx, registry, make_event, room_service):
        event = make_event(subject="", body="Agenda")

        result = create_room(ctx, registry, event, SPRINT_REQUEST)

        assert result.ok
        assert event.subject == "Sprint Planning"
        assert event.location == "https://cloud.example.com/call/tok123"
        assert event.body.count(BLOCK_HEADER) == 1
        assert "https://cloud.example.com/call/tok123" in event.body
        assert "Password: x7Gh2Kq9" in event.body
        assert event.body.startswith("Agenda")

        props = read_room_properties(event)
        assert props.token == "tok123"
        assert props.room_type is RoomType.EVENT_CONVERSATION
        assert event.properties["X-NCTALK-EVENT"] == "EventConversation"
        assert event.properties["X-NCTALK-LOBBY"] == "TRUE"
        assert props.start_epoch == 1748772000
        assert props.object_id == "1748772000#1748775600"
        assert props.password_set is True
        assert props.data_version == DATA_VERSION
        assert props.add_users is True
        assert props.add_guests is False

        assert registry.find_by_token("tok123") is not None

    def test_request_gets_event_times_and_password_description(self, ctx, registry, make_event, room_service):
        event = make_event()
        create_room(ctx, registry, event, SPRINT_REQUEST)

        sent = room_service.calls[0][1]
        assert sent.start == event.start
        assert sent.end == event.end
        assert sent.description == "Password: x7Gh2Kq9"

    def test_description_pushed_after_binding(self, ctx, registry, make_event, room_service):
        event = make_event()
        create_room(ctx, registry, event, RoomRequest(title="Weekly"))
        assert room_service.names() == ["create_room", "update_description"]
        assert room_service.calls[-1][2] == event.body.strip()

    def test_fallback_room_type_is_stored(self, ctx, registry, make_event, room_service):
        room_service.fallback_to_standard = True
        event = make_event()
        create_room(ctx, registry, event, SPRINT_REQUEST)
        assert read_room_properties(event).room_type is RoomType.STANDARD_ROOM
        assert registry.find_by_token("tok123").room_type is RoomType.STANDARD_ROOM

    def test_delegate_is_recorded_as_pending(self, ctx, registry, make_event):
        event = make_event()
        request = SPRINT_REQUEST.model_copy(update={"delegate_id": " bob ", "delegate_name": "Bob"})
        create_room(ctx, registry, event, request)
        assert read_property(event, PropertyField.DELEGATE_ID) == "bob"
        assert read_property(event, PropertyField.DELEGATED) == "FALSE"

    def test_create_failure_leaves_event_untouched(self, ctx, registry, make_event, room_service, notifier):
        room_service.fail("create_room", 401, "Unauthorized")
        event = make_event(subject="Keep", body="Notes")

        result = create_room(ctx, registry, event, SPRINT_REQUEST)

        assert not result.ok
        assert result.error.is_auth_error
        assert event.subject == "Keep"
        assert event.body == "Notes"
        assert event.properties == {}
        assert notifier.errors == [("Talk room could not be created: Unauthorized (status 401)", True)]
        assert len(registry) == 0


# ---------------------------------------------------------------------------
# Replacement
# ---------------------------------------------------------------------------


class TestReplaceRoom:
    def test_existing_room_is_deleted_first(self, ctx, registry, make_event, room_service):
        event = make_event(identifier="evt-1")
        write_room_properties(event, RoomProperties(token="old", room_type=RoomType.EVENT_CONVERSATION))
        old = registry.register(event, "old", False, RoomType.EVENT_CONVERSATION)

        create_room(ctx, registry, event, SPRINT_REQUEST)

        assert room_service.calls[0] == ("delete_room", "old", True)
        assert room_service.names()[1] == "create_room"
        assert old.disposed
        assert registry.find_by_token("old") is None
        assert registry.find_by_identifier("evt-1").token == "tok123"

    def test_failed_delete_aborts_creation(self, ctx, registry, make_event, room_service, notifier):
        room_service.fail("delete_room", 500)
        event = make_event()
        write_room_properties(event, RoomProperties(token="old"))

        result = create_room(ctx, registry, event, SPRINT_REQUEST)

        assert not result.ok
        assert "create_room" not in room_service.names()
        assert read_property(event, PropertyField.TOKEN) == "old"
        assert len(notifier.errors) == 1
