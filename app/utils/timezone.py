"""
Date and Time utilities

Centralizes timestamp generation and formatting so stored records and card
payloads share one ISO8601 representation.
"""
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso_z(dt: datetime) -> str:
    """
    Format a datetime as ISO8601 UTC with millisecond precision and a 'Z' suffix

    Args:
        dt: Datetime to format; naive values are assumed to be UTC

    Returns:
        String like '2025-10-09T14:30:00.000Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    """Return the current UTC time formatted by to_iso_z."""
    return to_iso_z(utc_now())
