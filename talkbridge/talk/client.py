"""Nextcloud Talk OCS API wrapper."""

import logging
from datetime import datetime
from typing import Any, Optional
from urllib.parse import quote

import httpx

from talkbridge.config import Settings, get_settings
from talkbridge.models import (
    ACTOR_TYPE_EMAILS,
    ACTOR_TYPE_USERS,
    Participant,
    RoomCreationResult,
    RoomRequest,
    RoomType,
)
from talkbridge.talk.errors import RoomResult, RoomServiceError
from talkbridge.utils.timestamps import build_object_id, to_unix_seconds

logger = logging.getLogger(__name__)

ROOM_API_PATH = "/ocs/v2.php/apps/spreed/api/v4/room"

ROOM_TYPE_PUBLIC = 3
LISTABLE_NONE = 0
LISTABLE_USERS = 1
LOBBY_STATE_MODERATORS_ONLY = 1

# Statuses that mean the server does not support event conversations.
EVENT_FALLBACK_STATUSES = (400, 409, 422, 501)
# Statuses tolerated when re-binding an event object during lobby updates.
RECOVERABLE_BINDING_STATUSES = (400, 405, 501)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _ocs_payload(data: Optional[dict], key: str) -> Any:
    """Raw value of ocs.<key>, or None when the envelope is malformed."""
    if not isinstance(data, dict):
        return None
    ocs = data.get("ocs")
    if not isinstance(ocs, dict):
        return None
    return ocs.get(key)


def _ocs_section(data: Optional[dict], key: str) -> dict:
    section = _ocs_payload(data, key)
    return section if isinstance(section, dict) else {}


def extract_ocs_message(data: Optional[dict]) -> str:
    """Pull a human readable error out of an OCS response envelope."""
    meta_message = _ocs_section(data, "meta").get("message") or ""
    error_detail = _ocs_section(data, "data").get("error") or ""
    parts = [str(part) for part in (meta_message, error_detail) if part]
    return " / ".join(parts)


def _service_error(status_code: int, data: Optional[dict]) -> RoomServiceError:
    return RoomServiceError.from_status(status_code, extract_ocs_message(data))


def _should_fallback_to_standard(status_code: int, data: Optional[dict]) -> bool:
    if status_code in EVENT_FALLBACK_STATUSES:
        return True
    message = extract_ocs_message(data).lower()
    return "object" in message and "event" in message


class TalkRoomClient:
    """Room service backed by the Nextcloud Talk REST API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize with connection settings."""
        self.settings = settings or get_settings()
        self.base_url = self.settings.normalized_server_url()
        self.client = httpx.Client(
            auth=(self.settings.username, self.settings.app_password),
            headers={"OCS-APIRequest": "true", "Accept": "application/json"},
            timeout=self.settings.request_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _room_url(self, token: str, suffix: str = "") -> str:
        return f"{self.base_url}{ROOM_API_PATH}/{quote(token.strip(), safe='')}{suffix}"

    def _request(
        self,
        method: str,
        url: str,
        payload: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> tuple[int, Optional[dict]]:
        """
        Send one JSON request.

        Returns (status_code, parsed_body). Transport failures map to
        status 0 so callers can classify them as "unavailable".
        """
        logger.debug(f"{method} {url}")
        try:
            response = self.client.request(method, url, json=payload, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"HTTP connection error for {method} {url}: {e}")
            return 0, {"ocs": {"meta": {"message": f"HTTP connection error: {e}"}}}

        logger.debug(f"{method} {url} -> {response.status_code}")
        data: Optional[dict] = None
        if response.content:
            try:
                parsed = response.json()
                data = parsed if isinstance(parsed, dict) else None
            except ValueError:
                logger.debug(f"Non-JSON response from {url}")
        return response.status_code, data

    def _ensure_configured(self) -> Optional[RoomServiceError]:
        if not self.settings.is_complete():
            return RoomServiceError.from_status(401, "Credentials are incomplete.")
        return None

    # ------------------------------------------------------------------
    # Room lifecycle
    # ------------------------------------------------------------------

    def create_room(self, request: RoomRequest) -> RoomResult[RoomCreationResult]:
        """
        Create a public room.

        Event conversations are attempted first when the request asks for
        one and carries both start and end; the server may reject them, in
        which case a standard room is created instead.
        """
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        attempts = []
        if request.room_type.is_event and request.start and request.end:
            attempts.append(True)
        attempts.append(False)

        for include_event in attempts:
            logger.info(
                f"CreateRoom attempt include_event={include_event} lobby={request.lobby_enabled} "
                f"listable={request.search_visible} add_users={request.add_users} "
                f"add_guests={request.add_guests}"
            )
            status_code, data = self._request(
                "POST",
                f"{self.base_url}{ROOM_API_PATH}",
                payload=self._build_create_payload(request, include_event),
            )

            if not _is_success(status_code):
                if include_event and _should_fallback_to_standard(status_code, data):
                    logger.info(f"CreateRoom falling back to standard room (status={status_code})")
                    continue
                return RoomResult.failure(_service_error(status_code, data))

            room_data = _ocs_section(data, "data")
            token = room_data.get("token") or room_data.get("roomToken") or (data or {}).get("token")
            if not token:
                return RoomResult.failure(
                    RoomServiceError.from_status(status_code, "Response did not contain a room token.")
                )

            if request.lobby_enabled:
                # Lobby failures never abort creation; the next save retries it.
                self._send_lobby(token, request.start)
            if not include_event:
                self._send_listable(token, request.search_visible)
            if request.description.strip() and not include_event:
                self._send_description(token, request.description)

            room_type = RoomType.EVENT_CONVERSATION if include_event else RoomType.STANDARD_ROOM
            return RoomResult.success(
                RoomCreationResult(
                    token=token,
                    url=f"{self.base_url}/call/{token}",
                    room_type=room_type,
                    lobby_enabled=request.lobby_enabled,
                    search_visible=request.search_visible,
                )
            )

        return RoomResult.failure(RoomServiceError.from_status(500, "Talk room could not be created."))

    def _build_create_payload(self, request: RoomRequest, include_event: bool) -> dict:
        payload: dict[str, Any] = {
            "roomType": ROOM_TYPE_PUBLIC,
            "type": ROOM_TYPE_PUBLIC,
            "roomName": request.title.strip() or "Meeting",
            "listable": LISTABLE_USERS if request.search_visible else LISTABLE_NONE,
            "participants": {},
        }
        if request.has_password:
            payload["password"] = request.password
        if request.description.strip():
            payload["description"] = request.description.strip()
        if include_event:
            object_id = build_object_id(request.start, request.end)
            if object_id:
                payload["objectType"] = "event"
                payload["objectId"] = object_id
        return payload

    def delete_room(self, token: str, is_event: bool) -> RoomResult[None]:
        """Delete a room; a room that is already gone counts as deleted."""
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        # Best-effort cleanup before the delete itself
        self._request("DELETE", self._room_url(token, "/participants/active"))
        if is_event:
            self._request("DELETE", self._room_url(token, "/object/event"))

        status_code, data = self._request("DELETE", self._room_url(token))
        if _is_success(status_code) or status_code == 404:
            return RoomResult.success()
        return RoomResult.failure(_service_error(status_code, data))

    def update_lobby(
        self, token: str, start: datetime, end: datetime, is_event: bool
    ) -> RoomResult[None]:
        """Move the lobby timer (and the event binding) to a new start."""
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        if is_event:
            object_id = build_object_id(start, end)
            if object_id:
                status_code, data = self._request(
                    "PUT",
                    self._room_url(token, "/object"),
                    payload={"objectType": "event", "objectId": object_id},
                )
                if not _is_success(status_code):
                    if status_code not in RECOVERABLE_BINDING_STATUSES:
                        return RoomResult.failure(_service_error(status_code, data))
                    logger.info(f"Event binding update not supported (status={status_code}), continuing")

        return self._send_lobby(token, start)

    def update_description(self, token: str, text: str, is_event: bool) -> RoomResult[None]:
        """Update the room description; event conversations carry none."""
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)
        if is_event:
            return RoomResult.success()
        return self._send_description(token, text)

    def _send_lobby(self, token: str, start: Optional[datetime]) -> RoomResult[None]:
        # A single request with the timer; two-stage updates confuse some servers.
        payload: dict[str, Any] = {"state": LOBBY_STATE_MODERATORS_ONLY}
        timer = to_unix_seconds(start)
        if timer is not None:
            payload["timer"] = timer

        status_code, data = self._request("PUT", self._room_url(token, "/webinar/lobby"), payload=payload)
        if _is_success(status_code):
            return RoomResult.success()
        logger.warning(f"Lobby update failed for room {token} (status={status_code})")
        return RoomResult.failure(_service_error(status_code, data))

    def _send_listable(self, token: str, search_visible: bool) -> None:
        scope = LISTABLE_USERS if search_visible else LISTABLE_NONE
        status_code, _ = self._request("PUT", self._room_url(token, "/listable"), payload={"scope": scope})
        if not _is_success(status_code):
            logger.warning(f"Listable update failed for room {token} (status={status_code})")

    def _send_description(self, token: str, text: str) -> RoomResult[None]:
        status_code, data = self._request(
            "PUT",
            self._room_url(token, "/description"),
            payload={"description": (text or "").strip()},
        )
        if _is_success(status_code):
            return RoomResult.success()
        return RoomResult.failure(_service_error(status_code, data))

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def add_user_participant(self, token: str, user_id: str) -> RoomResult[None]:
        return self._add_participant(token, ACTOR_TYPE_USERS, user_id)

    def add_guest_participant(self, token: str, email: str) -> RoomResult[None]:
        return self._add_participant(token, ACTOR_TYPE_EMAILS, email)

    def _add_participant(self, token: str, source: str, actor_id: str) -> RoomResult[None]:
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        status_code, data = self._request(
            "POST",
            self._room_url(token, "/participants"),
            payload={"newParticipant": actor_id.strip(), "source": source},
        )
        # 409: already a participant
        if _is_success(status_code) or status_code == 409:
            return RoomResult.success()
        return RoomResult.failure(_service_error(status_code, data))

    def get_participants(self, token: str) -> RoomResult[list[Participant]]:
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        status_code, data = self._request(
            "GET", self._room_url(token, "/participants"), params={"includeStatus": "true"}
        )
        if not _is_success(status_code):
            return RoomResult.failure(_service_error(status_code, data))

        entries = _ocs_payload(data, "data")
        if isinstance(entries, dict):
            # Some Talk versions wrap the list in {"participants": [...]}.
            entries = entries.get("participants")
        if not isinstance(entries, list):
            return RoomResult.success([])

        participants = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                attendee_id = int(entry.get("attendeeId") or 0)
            except (TypeError, ValueError):
                attendee_id = 0
            participants.append(
                Participant(
                    actor_type=str(entry.get("actorType") or ""),
                    actor_id=str(entry.get("actorId") or ""),
                    attendee_id=attendee_id,
                )
            )
        return RoomResult.success(participants)

    def promote_moderator(self, token: str, attendee_id: int) -> RoomResult[None]:
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)
        if attendee_id <= 0:
            return RoomResult.failure(RoomServiceError.inconsistent(f"Invalid attendee id {attendee_id}"))

        status_code, data = self._request(
            "POST", self._room_url(token, "/moderators"), payload={"attendeeId": attendee_id}
        )
        if _is_success(status_code) or status_code == 409:
            return RoomResult.success()
        return RoomResult.failure(_service_error(status_code, data))

    def leave_room(self, token: str) -> RoomResult[None]:
        error = self._ensure_configured()
        if error:
            return RoomResult.failure(error)

        status_code, data = self._request("DELETE", self._room_url(token, "/participants/self"))
        if _is_success(status_code) or status_code == 404:
            return RoomResult.success()
        return RoomResult.failure(_service_error(status_code, data))
