"""Typed results and error taxonomy for room service calls."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure categories of a room service call."""

    AUTHENTICATION = "authentication"
    UNAVAILABLE = "unavailable"
    OTHER = "other"
    LOCAL_STATE_INCONSISTENCY = "local_state_inconsistency"


AUTH_STATUS_CODES = (401, 403)


@dataclass(frozen=True)
class RoomServiceError:
    """A failed room service call."""

    kind: ErrorKind
    message: str
    status_code: int = 0

    @property
    def is_auth_error(self) -> bool:
        return self.kind is ErrorKind.AUTHENTICATION

    @classmethod
    def from_status(cls, status_code: int, message: str) -> "RoomServiceError":
        """Classify a non-success HTTP status."""
        if status_code in AUTH_STATUS_CODES:
            kind = ErrorKind.AUTHENTICATION
        elif status_code == 0:
            kind = ErrorKind.UNAVAILABLE
        else:
            kind = ErrorKind.OTHER
        return cls(kind=kind, message=message or f"HTTP {status_code}", status_code=status_code)

    @classmethod
    def unavailable(cls, message: str) -> "RoomServiceError":
        return cls(kind=ErrorKind.UNAVAILABLE, message=message, status_code=0)

    @classmethod
    def inconsistent(cls, message: str) -> "RoomServiceError":
        return cls(kind=ErrorKind.LOCAL_STATE_INCONSISTENCY, message=message)

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.message} (status {self.status_code})"
        return self.message


class RoomServiceException(Exception):
    """Raised by RoomResult.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: RoomServiceError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class RoomResult(Generic[T]):
    """Either a value or a RoomServiceError."""

    value: Optional[T] = None
    error: Optional[RoomServiceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "RoomResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RoomServiceError) -> "RoomResult[T]":
        return cls(error=error)

    def unwrap(self) -> Optional[T]:
        """Return the value or raise RoomServiceException."""
        if self.error is not None:
            raise RoomServiceException(self.error)
        return self.value
