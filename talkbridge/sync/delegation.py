"""Moderator handoff to a delegate."""

import logging
from typing import Optional

from talkbridge.host import CalendarEvent
from talkbridge.models import ACTOR_TYPE_USERS
from talkbridge.sync.context import SyncContext
from talkbridge.sync.properties import (
    DELEGATION_FIELDS,
    PropertyField,
    read_bool,
    read_property,
    remove_property,
    write_bool,
)
from talkbridge.talk.errors import RoomServiceError

logger = logging.getLogger(__name__)


def is_delegated_away(ctx: SyncContext, event: CalendarEvent) -> Optional[str]:
    """
    Return the delegate id if moderation was handed to someone else.

    True-ish only once the handoff completed and the delegate is not the
    current user.
    """
    delegate_id = read_property(event, PropertyField.DELEGATE_ID)
    if not delegate_id:
        return None
    if not read_bool(event, PropertyField.DELEGATED):
        return None
    if ctx.is_current_user(delegate_id):
        return None
    return delegate_id


def is_handoff_pending(event: CalendarEvent) -> Optional[str]:
    """Return the delegate id if a handoff was requested but not completed."""
    delegate_id = read_property(event, PropertyField.DELEGATE_ID)
    if not delegate_id:
        return None
    if read_bool(event, PropertyField.DELEGATED):
        return None
    return delegate_id


def clear_delegation(event: CalendarEvent) -> None:
    for field in DELEGATION_FIELDS:
        remove_property(event, field)


def try_apply_delegation(ctx: SyncContext, event: CalendarEvent, token: str) -> bool:
    """
    Hand moderation of the room to the pending delegate.

    Steps: add the delegate, look up their attendee id, promote them, leave
    the room, mark the handoff complete. Any failure before the promotion
    succeeds leaves the handoff pending so the next edit retries it.

    Returns True when the handoff completed during this call.
    """
    delegate_id = is_handoff_pending(event)
    if not delegate_id:
        return False

    if ctx.is_current_user(delegate_id):
        logger.info(f"Delegation to self ignored for room {token}, clearing delegation fields")
        clear_delegation(event)
        return False

    service = ctx.room_service
    logger.info(f"Delegating room {token} to {delegate_id}")

    added = service.add_user_participant(token, delegate_id)
    if not added.ok:
        logger.warning(f"Could not add delegate {delegate_id} to room {token}: {added.error}")
        ctx.notifier.warn(f"Delegate could not be added to the Talk room: {added.error}")
        return False

    listed = service.get_participants(token)
    if not listed.ok:
        logger.warning(f"Could not list participants of room {token}: {listed.error}")
        ctx.notifier.warn(f"Talk participants could not be read for delegation: {listed.error}")
        return False

    attendee_id = None
    for participant in listed.value or []:
        if (
            participant.actor_type.lower() == ACTOR_TYPE_USERS
            and participant.actor_id.lower() == delegate_id.lower()
        ):
            attendee_id = participant.attendee_id
            break

    if not attendee_id:
        error = RoomServiceError.inconsistent(
            f"Delegate {delegate_id} not found among participants of room {token}"
        )
        logger.warning(f"{error}; handoff stays pending")
        ctx.notifier.warn(f"Moderator role could not be handed over: {error}")
        return False

    promoted = service.promote_moderator(token, attendee_id)
    if not promoted.ok:
        logger.warning(f"Could not promote {delegate_id} in room {token}: {promoted.error}")
        ctx.notifier.warn(f"Moderator role could not be handed to {delegate_id}: {promoted.error}")
        return False

    left = service.leave_room(token)
    if not left.ok:
        # Moderation already moved; a leftover membership does not block the handoff.
        logger.warning(f"Could not leave room {token} after delegation: {left.error}")

    write_bool(event, PropertyField.DELEGATED, True)
    write_bool(event, PropertyField.DELEGATE_READY, True)
    logger.info(f"Delegation of room {token} to {delegate_id} completed")
    return True
