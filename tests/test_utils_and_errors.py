"""Tests for small helpers: timestamps, handler guard, hooks, errors, notifier."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from talkbridge.alerts.notifier import LogNotifier
from talkbridge.host import LifecycleEvent, LifecycleHooks
from talkbridge.talk.errors import ErrorKind, RoomResult, RoomServiceError, RoomServiceException
from talkbridge.utils.handlers import guarded_handler
from talkbridge.utils.timestamps import build_object_id, to_unix_seconds


class TestTimestamps:
    def test_to_unix_seconds(self):
        assert to_unix_seconds(datetime(2025, 6, 1, 10, tzinfo=timezone.utc)) == 1748772000
        assert to_unix_seconds(None) is None
        assert to_unix_seconds(datetime.min) is None

    def test_build_object_id(self):
        start = datetime(2025, 6, 1, 10, tzinfo=timezone.utc)
        end = datetime(2025, 6, 1, 11, tzinfo=timezone.utc)
        assert build_object_id(start, end) == "1748772000#1748775600"
        assert build_object_id(start, None) is None


class TestGuardedHandler:
    def test_exception_is_logged_not_raised(self, caplog):
        @guarded_handler("explode")
        def explode():
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR):
            explode()

        assert "Error in handler 'explode': kaboom" in caplog.text

    def test_passes_arguments(self):
        seen = []

        @guarded_handler("collect")
        def collect(value, flag=False):
            seen.append((value, flag))

        collect(1, flag=True)
        assert seen == [(1, True)]


class TestLifecycleHooks:
    def test_subscribe_once_and_fire(self):
        hooks = LifecycleHooks()
        fired = []

        def callback():
            fired.append(1)

        hooks.subscribe(LifecycleEvent.CONTENT_CHANGED, callback)
        hooks.subscribe(LifecycleEvent.CONTENT_CHANGED, callback)
        hooks.fire(LifecycleEvent.CONTENT_CHANGED)
        hooks.fire(LifecycleEvent.ABOUT_TO_REMOVE)

        assert fired == [1]

    def test_unsubscribe_while_firing(self):
        hooks = LifecycleHooks()
        fired = []

        def first():
            fired.append("first")
            hooks.unsubscribe(LifecycleEvent.CLOSED_UNSAVED, second)

        def second():
            fired.append("second")

        hooks.subscribe(LifecycleEvent.CLOSED_UNSAVED, first)
        hooks.subscribe(LifecycleEvent.CLOSED_UNSAVED, second)
        hooks.fire(LifecycleEvent.CLOSED_UNSAVED)

        assert fired == ["first", "second"]
        assert hooks.subscriber_count(LifecycleEvent.CLOSED_UNSAVED) == 1


class TestRoomServiceError:
    @pytest.mark.parametrize(
        "status_code,kind",
        [
            (401, ErrorKind.AUTHENTICATION),
            (403, ErrorKind.AUTHENTICATION),
            (0, ErrorKind.UNAVAILABLE),
            (500, ErrorKind.OTHER),
        ],
    )
    def test_from_status(self, status_code, kind):
        assert RoomServiceError.from_status(status_code, "").kind is kind

    def test_default_message(self):
        assert str(RoomServiceError.from_status(502, "")) == "HTTP 502 (status 502)"

    def test_result_unwrap(self):
        assert RoomResult.success(5).unwrap() == 5
        failed = RoomResult.failure(RoomServiceError.inconsistent("missing"))
        assert not failed.ok
        with pytest.raises(RoomServiceException) as exc_info:
            failed.unwrap()
        assert exc_info.value.error.kind is ErrorKind.LOCAL_STATE_INCONSISTENCY


def test_log_notifier(caplog):
    notifier = LogNotifier()
    with caplog.at_level(logging.WARNING):
        notifier.warn("lobby late")
        notifier.error("denied", is_auth_error=True)
    assert "lobby late" in caplog.text
    assert "Authentication problem: denied" in caplog.text
