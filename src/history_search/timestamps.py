"""Convert native browser timestamps to UTC datetimes with second resolution."""

from __future__ import annotations

import math
from datetime import datetime, timezone

# Seconds from 1601-01-01 to 1970-01-01 (Chrome/WebKit epoch).
CHROME_EPOCH_OFFSET = 11644473600
# Seconds from 1970-01-01 to 2001-01-01 (Safari/Core Data epoch).
APPLE_EPOCH_OFFSET = 978307200

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def from_unix_seconds(seconds: float | int | None) -> datetime | None:
    """Unix seconds to an aware UTC datetime, truncated to whole seconds.

    Returns None for a missing (None or zero) value; raises ValueError when the
    value cannot be represented.
    """
    if seconds is None or seconds == 0:
        return None
    try:
        return datetime.fromtimestamp(math.floor(float(seconds)), tz=timezone.utc)
    except (OverflowError, OSError, TypeError) as e:
        raise ValueError(f"Timestamp out of range: {seconds!r}") from e


def from_chrome(value: int | None) -> datetime | None:
    """Chromium stores microseconds since 1601-01-01."""
    if value is None or value == 0:
        return None
    return from_unix_seconds(int(value) // 1_000_000 - CHROME_EPOCH_OFFSET)


def from_firefox(value: int | None) -> datetime | None:
    """Firefox PRTime: microseconds since the Unix epoch."""
    if value is None or value == 0:
        return None
    return from_unix_seconds(int(value) // 1_000_000)


def from_safari(value: float | int | None) -> datetime | None:
    """Safari stores (fractional) seconds since 2001-01-01."""
    if value is None:
        return None
    return from_unix_seconds(float(value) + APPLE_EPOCH_OFFSET)


def to_unix_seconds(dt: datetime) -> int:
    """Aware or naive-UTC datetime to integer Unix seconds."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return math.floor(dt.timestamp())
