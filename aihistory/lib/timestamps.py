"""Timestamp coercion to ISO 8601.

Platform exports carry timestamps as:
- Unix epoch seconds (int/float, e.g. ChatGPT ``create_time``)
- Unix epoch milliseconds (int/float above 1e10)
- numeric strings of either
- ISO 8601 strings, with or without ``Z``

All output is UTC with millisecond precision and a ``Z`` suffix.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone

# Anything above this is taken as milliseconds (year 2286 in seconds).
_MILLISECOND_THRESHOLD = 10_000_000_000


def parse_timestamp(value: object) -> datetime | None:
    """Parse a timestamp from various formats to an aware UTC datetime."""
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float)):
            if not math.isfinite(value):
                return None
            seconds = value / 1000 if value > _MILLISECOND_THRESHOLD else value
            return datetime.fromtimestamp(float(seconds), tz=timezone.utc)

        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return None
            try:
                number = float(raw)
            except ValueError:
                number = None
            if number is not None:
                return parse_timestamp(number)
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    except (ValueError, OSError, OverflowError):
        # OSError/OverflowError for out-of-range epochs
        return None

    return None


def format_timestamp(ts: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_iso(value: object) -> str | None:
    """Coerce any timestamp-ish value to an ISO 8601 string, or None."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    return format_timestamp(parsed)


__all__ = ["format_timestamp", "parse_timestamp", "to_iso"]
