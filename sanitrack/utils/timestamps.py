"""
Timestamp helpers.

CRITICAL: All datetimes must be timezone-aware (UTC) to prevent comparison bugs
between request input, stored values and Firestore DatetimeWithNanoseconds.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value) -> Optional[datetime]:
    """
    Normalize datetimes, ISO strings and Firestore timestamps to aware UTC.
    Naive datetimes are interpreted as UTC. Returns None for unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return to_utc(dt)
    # Firestore Timestamp interface
    if hasattr(value, "timestamp"):
        return datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
    return None
