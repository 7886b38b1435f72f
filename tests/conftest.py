"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

# Keep developer machines' settings out of the tests
for _name in list(os.environ):
    if _name.startswith("TALKBRIDGE_"):
        del os.environ[_name]

from talkbridge.host import LifecycleEvent, LifecycleHooks
from talkbridge.models import (
    Participant,
    Recipient,
    RoomCreationResult,
    RoomRequest,
    RoomType,
)
from talkbridge.sync.context import SyncContext
from talkbridge.sync.registry import SubscriptionRegistry
from talkbridge.talk.errors import RoomResult, RoomServiceError

SERVER_URL = "https://cloud.example.com"
EVENT_START = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)


class FakeEvent:
    """In-memory calendar event with host-style lifecycle notifications."""

    def __init__(
        self,
        subject: str = "Meeting",
        start: datetime = EVENT_START,
        duration: timedelta = timedelta(hours=1),
        body: str = "",
        identifier: Optional[str] = None,
        is_organizer: bool = True,
        recipients: Optional[list[Recipient]] = None,
        properties: Optional[dict[str, str]] = None,
    ):
        self.subject = subject
        self.start = start
        self.end = start + duration
        self.body = body
        self.location = ""
        self.recipients = recipients or []
        self.properties = dict(properties or {})
        self.identifier = identifier
        self.is_organizer = is_organizer
        self.hooks = LifecycleHooks()

    def subscribe(self, kind, callback):
        self.hooks.subscribe(kind, callback)

    def unsubscribe(self, kind, callback):
        self.hooks.unsubscribe(kind, callback)

    def save(self, identifier: Optional[str] = None) -> None:
        if identifier is not None:
            self.identifier = identifier
        self.hooks.fire(LifecycleEvent.CONTENT_CHANGED)

    def remove(self) -> None:
        self.hooks.fire(LifecycleEvent.ABOUT_TO_REMOVE)

    def close_unsaved(self) -> None:
        self.hooks.fire(LifecycleEvent.CLOSED_UNSAVED)


class FakeRoomService:
    """Room service double that records every call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.failures: dict[str, RoomServiceError] = {}
        self.participants: list[Participant] = []
        self.token = "tok123"
        self.fallback_to_standard = False

    def fail(self, operation: str, status_code: int = 500, message: str = "boom") -> None:
        self.failures[operation] = RoomServiceError.from_status(status_code, message)

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _result(self, operation: str, value=None) -> RoomResult:
        if operation in self.failures:
            return RoomResult.failure(self.failures[operation])
        return RoomResult.success(value)

    def create_room(self, request: RoomRequest):
        self.calls.append(("create_room", request))
        room_type = request.room_type
        if self.fallback_to_standard:
            room_type = RoomType.STANDARD_ROOM
        return self._result(
            "create_room",
            RoomCreationResult(
                token=self.token,
                url=f"{SERVER_URL}/call/{self.token}",
                room_type=room_type,
                lobby_enabled=request.lobby_enabled,
                search_visible=request.search_visible,
            ),
        )

    def delete_room(self, token, is_event):
        self.calls.append(("delete_room", token, is_event))
        return self._result("delete_room")

    def update_lobby(self, token, start, end, is_event):
        self.calls.append(("update_lobby", token, start, end, is_event))
        return self._result("update_lobby")

    def update_description(self, token, text, is_event):
        self.calls.append(("update_description", token, text, is_event))
        return self._result("update_description")

    def add_user_participant(self, token, user_id):
        self.calls.append(("add_user_participant", token, user_id))
        return self._result("add_user_participant")

    def add_guest_participant(self, token, email):
        self.calls.append(("add_guest_participant", token, email))
        return self._result("add_guest_participant")

    def get_participants(self, token):
        self.calls.append(("get_participants", token))
        return self._result("get_participants", list(self.participants))

    def promote_moderator(self, token, attendee_id):
        self.calls.append(("promote_moderator", token, attendee_id))
        return self._result("promote_moderator")

    def leave_room(self, token):
        self.calls.append(("leave_room", token))
        return self._result("leave_room")


class FakeDirectory:
    """Email <-> user id lookup backed by a dict."""

    def __init__(self, users: Optional[dict[str, str]] = None):
        # email -> uid
        self.users = {email.lower(): uid for email, uid in (users or {}).items()}

    def try_get_uid(self, email):
        return self.users.get((email or "").strip().lower())

    def try_get_primary_email(self, user_id):
        for email, uid in self.users.items():
            if uid.lower() == (user_id or "").lower():
                return email
        return None


class RecordingNotifier:
    def __init__(self):
        self.warnings: list[str] = []
        self.errors: list[tuple[str, bool]] = []

    def warn(self, message):
        self.warnings.append(message)

    def error(self, message, is_auth_error=False):
        self.errors.append((message, is_auth_error))


@pytest.fixture
def room_service():
    return FakeRoomService()


@pytest.fixture
def directory():
    return FakeDirectory(
        {
            "alice@example.com": "alice",
            "bob@example.com": "bob",
            "carol@example.com": "carol",
        }
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ctx(room_service, directory, notifier):
    """Sync context acting as user "alice"."""
    return SyncContext(
        room_service=room_service,
        directory=directory,
        current_user_id="alice",
        notifier=notifier,
    )


@pytest.fixture
def registry(ctx):
    return SubscriptionRegistry(ctx)


@pytest.fixture
def make_event():
    def _make(**kwargs) -> FakeEvent:
        return FakeEvent(**kwargs)

    return _make
