"""Room service contract and Nextcloud Talk client."""

from talkbridge.talk.errors import ErrorKind, RoomResult, RoomServiceError, RoomServiceException
from talkbridge.talk.service import RoomService

__all__ = [
    "ErrorKind",
    "RoomResult",
    "RoomService",
    "RoomServiceError",
    "RoomServiceException",
]
