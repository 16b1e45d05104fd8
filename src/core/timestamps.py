"""
Timestamp conversion utilities for Apple archives.

Cocoa (NSDate) timestamps are seconds since 2001-01-01 00:00:00 UTC and may
carry a fractional part. Conversions here use exact ``timedelta`` arithmetic
so sub-second precision survives down to the microsecond.
"""

from __future__ import annotations

from datetime import datetime, timezone, timedelta
from typing import Union

# Constants for timestamp epoch calculations
COCOA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)


def cocoa_to_datetime(seconds: Union[int, float]) -> datetime:
    """
    Convert a Cocoa timestamp to an aware UTC datetime.

    Args:
        seconds: Cocoa timestamp (seconds since 2001, may be fractional)

    Returns:
        datetime in UTC

    Raises:
        OverflowError: if the timestamp falls outside datetime's range
        ValueError: if the timestamp is NaN

    Example:
        >>> cocoa_to_datetime(86400)
        datetime.datetime(2001, 1, 2, 0, 0, tzinfo=datetime.timezone.utc)
    """
    return COCOA_EPOCH + timedelta(seconds=seconds)


def to_js_iso(dt: datetime) -> str:
    """
    Render a datetime the way JavaScript's ``Date.toISOString()`` does.

    Naive datetimes are taken as UTC. Microseconds are truncated to
    milliseconds.

    Example:
        >>> to_js_iso(COCOA_EPOCH)
        '2001-01-01T00:00:00.000Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def compact_stamp(dt: datetime) -> str:
    """
    Render a datetime as ``YYYYMMDDHHMMSS`` in UTC, seconds precision.

    Example:
        >>> compact_stamp(COCOA_EPOCH)
        '20010101000000'
    """
    return to_js_iso(dt).split(".")[0].replace(":", "").replace("-", "").replace("T", "")


def format_duration(seconds: Union[int, float]) -> str:
    """
    Format duration in seconds to human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Human-readable duration string

    Example:
        >>> format_duration(3661)
        '1h 1m 1s'
        >>> format_duration(0.25)
        '0.25s'
    """
    if seconds < 0:
        return "0s"
    if seconds < 1:
        return f"{seconds:.2f}s"

    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)

    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")

    return " ".join(parts)
