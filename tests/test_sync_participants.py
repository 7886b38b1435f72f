"""Tests for talkbridge/sync/participants.py."""

from __future__ import annotations

from talkbridge.models import Recipient, RecipientRole
from talkbridge.sync.participants import (
    collect_attendee_emails,
    resolve_add_flags,
    sync_participants,
)
from talkbridge.sync.properties import RoomProperties, write_room_properties


def _event(make_event, recipients, **flags):
    event = make_event(identifier="evt-1", recipients=recipients)
    write_room_properties(event, RoomProperties(token="tok1", **flags))
    return event


RECIPIENTS = [
    Recipient(email="alice@example.com", role=RecipientRole.ORGANIZER),
    Recipient(email="bob@example.com"),
    Recipient(email="guest@outside.org", role=RecipientRole.OPTIONAL),
    Recipient(email="room-4@example.com", role=RecipientRole.RESOURCE),
]


class TestHelpers:
    def test_split_flags_win(self):
        assert resolve_add_flags(RoomProperties(add_users=True, add_participants=False)) == (True, False)

    def test_combined_flag_fallback(self):
        assert resolve_add_flags(RoomProperties(add_participants=True)) == (True, True)
        assert resolve_add_flags(RoomProperties()) == (False, False)

    def test_collect_skips_resources_and_duplicates(self, make_event):
        event = make_event(
            recipients=RECIPIENTS + [Recipient(email="BOB@example.com"), Recipient(email=" ")]
        )
        assert collect_attendee_emails(event) == [
            "alice@example.com",
            "bob@example.com",
            "guest@outside.org",
        ]


class TestSyncParticipants:
    def test_adds_users_and_guests(self, ctx, make_event, room_service):
        event = _event(make_event, RECIPIENTS, add_users=True, add_guests=True)

        summary = sync_participants(ctx, event, "tok1")

        assert room_service.calls == [
            ("add_user_participant", "tok1", "bob"),
            ("add_guest_participant", "tok1", "guest@outside.org"),
        ]
        assert summary == {"users_added": 1, "guests_added": 1, "skipped": 0, "failed": 0}

    def test_users_only(self, ctx, make_event, room_service):
        event = _event(make_event, RECIPIENTS, add_users=True, add_guests=False)
        summary = sync_participants(ctx, event, "tok1")
        assert room_service.names() == ["add_user_participant"]
        assert summary["skipped"] == 1

    def test_flags_off_makes_no_calls(self, ctx, make_event, room_service):
        event = _event(make_event, RECIPIENTS)
        sync_participants(ctx, event, "tok1")
        assert room_service.calls == []

    def test_failures_are_counted_not_raised(self, ctx, make_event, room_service):
        room_service.fail("add_guest_participant", 400)
        event = _event(make_event, RECIPIENTS, add_participants=True)

        summary = sync_participants(ctx, event, "tok1")

        assert summary["users_added"] == 1
        assert summary["failed"] == 1
