"""Timestamp helpers shared by the record normalizers."""

from __future__ import annotations

import re
from datetime import UTC, datetime

# Values below this are epoch seconds, values at or above it epoch milliseconds.
EPOCH_MILLIS_THRESHOLD = 10_000_000_000

# Log store format: "2025-12-30 08:12:01.123" (space separator, no zone).
_STORE_TS_RE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")
_ZONE_SUFFIX_RE = re.compile(r"(?:Z|[+-]\d{2}:?\d{2})$")


def epoch_to_seconds(value: int | float) -> float:
    """Return epoch seconds, treating large values as milliseconds."""
    if value >= EPOCH_MILLIS_THRESHOLD:
        return value / 1000.0
    return float(value)


def canonicalize_timestamp_text(value: str) -> str:
    """Rewrite ``YYYY-MM-DD HH:MM:SS`` store timestamps to ``YYYY-MM-DDTHH:MM:SSZ``."""
    s = value.strip()
    if _STORE_TS_RE.match(s):
        s = s.replace(" ", "T", 1)
        if not _ZONE_SUFFIX_RE.search(s):
            s += "Z"
    return s


def parse_timestamp(value: object) -> datetime | None:
    """Parse ISO-8601 text, store-format text or epoch numbers into aware UTC."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, (int, float)):
        try:
            ts = datetime.fromtimestamp(epoch_to_seconds(value), tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.isdigit():
            return parse_timestamp(int(s))
        s = canonicalize_timestamp_text(s)
        try:
            ts = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)
