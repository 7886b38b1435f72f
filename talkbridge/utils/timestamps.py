"""Unix timestamp helpers."""

from datetime import datetime
from typing import Optional


def to_unix_seconds(value: Optional[datetime]) -> Optional[int]:
    """
    Convert a datetime to Unix seconds.

    Naive datetimes are interpreted as local time, the way calendar hosts
    hand them out.
    """
    if value is None or value == datetime.min:
        return None
    return int(value.timestamp())


def build_object_id(start: Optional[datetime], end: Optional[datetime]) -> Optional[str]:
    """Build the "<start>#<end>" object id that binds a room to an event."""
    start_epoch = to_unix_seconds(start)
    end_epoch = to_unix_seconds(end)
    if start_epoch is None or end_epoch is None:
        return None
    return f"{start_epoch}#{end_epoch}"
