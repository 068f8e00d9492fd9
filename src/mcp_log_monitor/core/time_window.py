"""Time-window parsing helpers.

Converts user-friendly selectors (date, ISO week, month, lookbacks) and raw
epoch/ISO bounds into UTC datetime ranges.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta

from .records.timestamps import parse_timestamp

_WEEK_RE = re.compile(r"^(?P<y>\d{4})-W(?P<w>\d{2})$")
_MONTH_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})$")


def parse_bound(value: int | float | str | datetime) -> datetime:
    """Parse an epoch (seconds or milliseconds) or ISO-8601 bound. Naive means UTC."""
    ts = parse_timestamp(value)
    if ts is None:
        raise ValueError(f"Invalid time bound: {value!r}")
    return ts


def range_for_date(s: str) -> tuple[datetime, datetime]:
    """Return the UTC day window for an ISO date string."""
    d = date.fromisoformat(s)
    start = datetime(d.year, d.month, d.day, tzinfo=UTC)
    return start, start + timedelta(days=1)


def range_for_week(s: str) -> tuple[datetime, datetime]:
    """Return the UTC week window for a YYYY-Www selector."""
    m = _WEEK_RE.match(s)
    if not m:
        raise ValueError("week must look like YYYY-Www (e.g., 2025-W52)")
    start_date = date.fromisocalendar(int(m.group("y")), int(m.group("w")), 1)  # Monday
    start = datetime(start_date.year, start_date.month, start_date.day, tzinfo=UTC)
    return start, start + timedelta(days=7)


def range_for_month(s: str) -> tuple[datetime, datetime]:
    """Return the UTC month window for a YYYY-MM selector."""
    m = _MONTH_RE.match(s)
    if not m:
        raise ValueError("month must look like YYYY-MM (e.g., 2025-12)")
    y = int(m.group("y"))
    mo = int(m.group("m"))
    start = datetime(y, mo, 1, tzinfo=UTC)
    if mo == 12:
        end = datetime(y + 1, 1, 1, tzinfo=UTC)
    else:
        end = datetime(y, mo + 1, 1, tzinfo=UTC)
    return start, end


def resolve_time_window(
    *,
    since: int | float | str | None = None,
    until: int | float | str | None = None,
    date_: str | None = None,
    week: str | None = None,
    month: str | None = None,
    days_lookback: int | None = None,
    hours_lookback: int | None = None,
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve a UTC window. Selectors win over lookbacks, lookbacks over bounds."""
    if date_:
        return range_for_date(date_)
    if week:
        return range_for_week(week)
    if month:
        return range_for_month(month)

    if days_lookback is not None and hours_lookback is not None:
        raise ValueError("Use either days_lookback or hours_lookback, not both.")
    if days_lookback is not None or hours_lookback is not None:
        end = now or datetime.now(UTC)
        if days_lookback is not None:
            if days_lookback < 0:
                raise ValueError("days_lookback must be >= 0")
            return end - timedelta(days=days_lookback), end
        if hours_lookback < 0:
            raise ValueError("hours_lookback must be >= 0")
        return end - timedelta(hours=hours_lookback), end

    s = parse_bound(since) if since is not None and since != "" else None
    u = parse_bound(until) if until is not None and until != "" else None
    if s is not None and u is not None and s >= u:
        raise ValueError("since must be < until")
    return s, u
