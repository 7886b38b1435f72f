"""Attendee to room participant synchronization."""

import logging

from talkbridge.host import CalendarEvent
from talkbridge.models import RecipientRole
from talkbridge.sync.context import SyncContext
from talkbridge.sync.properties import RoomProperties, read_room_properties

logger = logging.getLogger(__name__)


def resolve_add_flags(props: RoomProperties) -> tuple[bool, bool]:
    """
    Effective (add_users, add_guests).

    The split flags win; events written before they existed only carry the
    combined flag.
    """
    if props.add_users is None and props.add_guests is None:
        combined = bool(props.add_participants)
        return combined, combined
    return bool(props.add_users), bool(props.add_guests)


def collect_attendee_emails(event: CalendarEvent) -> list[str]:
    """Attendee emails without resources, de-duplicated case-insensitively."""
    seen: set[str] = set()
    emails = []
    for recipient in event.recipients or []:
        if recipient.role == RecipientRole.RESOURCE:
            continue
        email = (recipient.email or "").strip()
        if not email:
            continue
        key = email.lower()
        if key in seen:
            continue
        seen.add(key)
        emails.append(email)
    return emails


def sync_participants(ctx: SyncContext, event: CalendarEvent, token: str) -> dict:
    """
    Add the event's attendees to the room.

    Known users are added as users, everyone else as email guests, each
    according to the event's add flags. Single failures are logged and
    skipped. Returns summary counts.
    """
    summary = {
        "users_added": 0,
        "guests_added": 0,
        "skipped": 0,
        "failed": 0,
    }

    add_users, add_guests = resolve_add_flags(read_room_properties(event))
    if not add_users and not add_guests:
        return summary

    self_email = None
    if ctx.current_user_id:
        self_email = ctx.directory.try_get_primary_email(ctx.current_user_id)
    self_key = self_email.strip().lower() if self_email else None

    for email in collect_attendee_emails(event):
        if self_key and email.lower() == self_key:
            continue

        user_id = ctx.directory.try_get_uid(email)
        if user_id and ctx.is_current_user(user_id):
            continue

        if user_id:
            if not add_users:
                summary["skipped"] += 1
                continue
            result = ctx.room_service.add_user_participant(token, user_id)
            counter = "users_added"
        else:
            if not add_guests:
                summary["skipped"] += 1
                continue
            result = ctx.room_service.add_guest_participant(token, email)
            counter = "guests_added"

        if result.ok:
            summary[counter] += 1
        else:
            summary["failed"] += 1
            logger.warning(f"Could not add participant {email} to room {token}: {result.error}")

    logger.info(f"Participant sync for room {token}: {summary}")
    return summary
