"""User-initiated room actions."""

import logging

from talkbridge.host import CalendarEvent
from talkbridge.models import RoomCreationResult, RoomRequest
from talkbridge.sync.body_block import build_initial_description, description_payload, upsert_block
from talkbridge.sync.context import SyncContext
from talkbridge.sync.properties import (
    DATA_VERSION,
    RoomProperties,
    clear_all,
    read_room_properties,
    write_room_properties,
)
from talkbridge.sync.registry import SubscriptionRegistry
from talkbridge.sync.subscription import Subscription
from talkbridge.talk.errors import RoomResult
from talkbridge.utils.timestamps import build_object_id, to_unix_seconds

logger = logging.getLogger(__name__)


def replace_existing_room(
    ctx: SyncContext,
    registry: SubscriptionRegistry,
    event: CalendarEvent,
) -> RoomResult[None]:
    """Delete the room an event already carries before a new one is created."""
    props = read_room_properties(event)
    if not props.token:
        return RoomResult.success()

    logger.info(f"Replacing existing room {props.token}")
    result = ctx.room_service.delete_room(props.token, props.is_event_conversation)
    if not result.ok:
        logger.warning(f"Existing room {props.token} could not be deleted: {result.error}")
        ctx.notifier.error(f"Talk room could not be deleted: {result.error}", result.error.is_auth_error)
        return result

    for subscription in (registry.find_by_token(props.token), registry.find_by_event(event)):
        if subscription:
            subscription.dispose()
    return result


def create_room(
    ctx: SyncContext,
    registry: SubscriptionRegistry,
    event: CalendarEvent,
    request: RoomRequest,
) -> RoomResult[RoomCreationResult]:
    """
    Create a room for an event and bind it.

    Any remote failure is shown as a blocking error and leaves the event
    untouched.
    """
    logger.info(
        f"Creating room (title='{request.title}', type={request.room_type.value}, "
        f"lobby={request.lobby_enabled}, search={request.search_visible}, "
        f"password_set={request.has_password})"
    )

    replaced = replace_existing_room(ctx, registry, event)
    if not replaced.ok:
        return RoomResult.failure(replaced.error)

    updates = {}
    if request.start is None:
        updates.update(start=event.start, end=event.end)
    if not request.description.strip():
        updates["description"] = build_initial_description(request.password, ctx.language)
    if updates:
        request = request.model_copy(update=updates)

    created = ctx.room_service.create_room(request)
    if not created.ok:
        logger.warning(f"Room could not be created: {created.error}")
        ctx.notifier.error(f"Talk room could not be created: {created.error}", created.error.is_auth_error)
        return created

    apply_room_to_event(ctx, registry, event, request, created.value)
    logger.info(f"Room {created.value.token} created and stored on event")
    return created


def apply_room_to_event(
    ctx: SyncContext,
    registry: SubscriptionRegistry,
    event: CalendarEvent,
    request: RoomRequest,
    result: RoomCreationResult,
) -> Subscription:
    """Fold a created room into the event's text, properties and the registry."""
    if request.title.strip():
        event.subject = request.title.strip()
    event.location = result.url
    event.body = upsert_block(
        event.body, result.url, request.password, ctx.language, ctx.body_block_search_lines
    )

    clear_all(event)
    delegate_id = (request.delegate_id or "").strip() or None
    delegate_name = (request.delegate_name or "").strip() or None
    props = RoomProperties(
        token=result.token,
        url=result.url,
        room_type=result.room_type,
        lobby_enabled=result.lobby_enabled,
        search_visible=result.search_visible,
        password_set=request.has_password,
        start_epoch=to_unix_seconds(event.start),
        data_version=DATA_VERSION,
        add_users=request.add_users,
        add_guests=request.add_guests,
        delegate_id=delegate_id,
        delegate_name=delegate_name if delegate_id else None,
        delegated=False if delegate_id else None,
        object_id=build_object_id(event.start, event.end),
    )
    write_room_properties(event, props)

    subscription = registry.register(
        event,
        result.token,
        result.lobby_enabled,
        result.room_type,
    )

    described = ctx.room_service.update_description(
        result.token, description_payload(event.body), result.room_type.is_event
    )
    if not described.ok:
        logger.warning(f"Description update failed for room {result.token}: {described.error}")
        ctx.notifier.warn(f"Room description could not be updated: {described.error}")

    return subscription
