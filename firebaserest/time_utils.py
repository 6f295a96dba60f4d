"""
Time parsing utilities for the trusted time resolver.

Time services answer in one of several shapes:
- ISO datetimes: "2025-12-30T10:00:00Z", "2025-12-30T10:00:00.1234567", "2025-12-30T10:00:00+05:00"
- Unix timestamps in seconds: 1767088800
"""

import re
import time
from datetime import datetime, timezone

# Fractional seconds beyond microseconds are not accepted by strptime.
_FRACTION_RE = re.compile(r'(\.\d{6})\d+')

_ISO_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",       # ISO with microseconds and Z
    "%Y-%m-%dT%H:%M:%S.%f%z",      # ISO with microseconds and timezone
    "%Y-%m-%dT%H:%M:%S.%f",        # ISO with microseconds, no timezone
    "%Y-%m-%dT%H:%M:%SZ",          # ISO with Z
    "%Y-%m-%dT%H:%M:%S%z",         # ISO with timezone offset
    "%Y-%m-%dT%H:%M:%S",           # ISO with T separator
    "%Y-%m-%d %H:%M:%S",           # Date and time with space
]


def now_ms():
    """
    Local wall-clock time.

    Return:
        int: milliseconds since the epoch.
    """
    return int(time.time() * 1000)


def parse_iso_datetime_ms(value):
    """
    Parse an ISO-8601 datetime string into milliseconds since the epoch.

    Datetimes without timezone information are assumed to be UTC.

    Parameters:
        value (str): datetime string.

    Return:
        int: milliseconds since the epoch.

    Raises:
        ValueError: If the format is not recognized.
    """
    if not isinstance(value, str) or value.strip() == '':
        raise ValueError("Datetime must be a non-empty string")

    value = _FRACTION_RE.sub(r'\1', value.strip())

    for fmt in _ISO_FORMATS:
        try:
            dt = datetime.strptime(value, fmt)
        except ValueError:
            continue

        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)

        return int(dt.timestamp() * 1000)

    raise ValueError(f"Unable to parse datetime: '{value}'")


def parse_epoch_seconds_ms(value):
    """
    Convert an integer seconds value (int or digit string) to milliseconds.

    Raises:
        ValueError: If the value is not an integer number of seconds.
    """
    if isinstance(value, bool):
        raise ValueError("Boolean is not a timestamp")
    if isinstance(value, int):
        return value * 1000
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip()) * 1000
    raise ValueError(f"Not an integer timestamp: {value!r}")


def format_timestamp_ms(timestamp_ms):
    """
    Format a millisecond timestamp as an ISO string in UTC.
    """
    dt = datetime.fromtimestamp(timestamp_ms / 1000.0, tz=timezone.utc)
    return dt.isoformat()
