"""
Time Utilities

Venues report timestamps in several shapes:
- milliseconds since epoch (MYX, Aster, GRVT: 1704110400000, sometimes as a string)
- seconds since epoch (1704110400)
- ISO-8601 strings (Paradex, Variational: "2024-01-01T12:00:00Z")

The helpers here normalize all of them into timezone-aware UTC datetimes.
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

from dateutil import parser as dateparser


def to_utc_datetime(timestamp: Union[int, float]) -> datetime:
    """
    Convert a numeric timestamp (seconds or milliseconds) to UTC datetime.

    Values above 1e12 are treated as milliseconds, anything else as seconds.

    Raises:
        ValueError: If timestamp is negative or out of range

    Examples:
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse any venue timestamp representation into a UTC datetime.

    Accepts ints/floats (seconds or ms), numeric strings, ISO-8601 strings
    and datetimes. Returns None for None, empty strings and zero, which
    venues use to mean "unknown".

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None or value == "" or value == 0:
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        return to_utc_datetime(value)

    text = str(value).strip()
    try:
        return to_utc_datetime(float(text))
    except ValueError:
        pass

    try:
        parsed = dateparser.isoparse(text)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Unrecognized timestamp: {value!r}") from e

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def datetime_to_timestamp(dt: datetime, milliseconds: bool = False) -> int:
    """
    Convert a datetime to a Unix timestamp (naive datetimes are taken as UTC).

    Example:
        >>> datetime_to_timestamp(datetime(2024, 1, 1, 12, tzinfo=timezone.utc), milliseconds=True)
        1704110400000
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    timestamp = int(dt.timestamp())

    if milliseconds:
        timestamp *= 1000

    return timestamp


def current_utc_timestamp(milliseconds: bool = False) -> int:
    """Current Unix timestamp in seconds (or milliseconds)."""
    return datetime_to_timestamp(datetime.now(timezone.utc), milliseconds)


def current_utc_datetime() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
