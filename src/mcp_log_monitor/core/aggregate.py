"""Daily buckets for the trailing dashboard window."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import UTC, date, datetime, timedelta

from .dedup import DEFAULT_DEDUP_WINDOW, dedupe
from .models import DailyBucket, Event, LogRecord, Severity

DEFAULT_WINDOW_DAYS = 7


def utc_day(ts: datetime) -> date:
    """Calendar day of a timestamp in UTC."""
    return ts.astimezone(UTC).date()


def trailing_days(window_days: int, *, today: date) -> list[date]:
    """Return ``window_days`` contiguous days ending at ``today`` (oldest first)."""
    if window_days < 1:
        raise ValueError("window_days must be >= 1")
    return [today - timedelta(days=offset) for offset in range(window_days - 1, -1, -1)]


def aggregate(
    records: Iterable[LogRecord],
    events: Iterable[Event],
    window_days: int = DEFAULT_WINDOW_DAYS,
    *,
    dedup_window: timedelta = DEFAULT_DEDUP_WINDOW,
    today: date | None = None,
) -> list[DailyBucket]:
    """Count error records and deduplicated events per day of the window.

    Error records are counted line by line. Events are deduplicated per subject
    *per day*, so a burst spanning midnight contributes to both days.
    """
    if today is None:
        today = datetime.now(UTC).date()
    days = trailing_days(window_days, today=today)

    error_counts: dict[date, int] = dict.fromkeys(days, 0)
    for record in records:
        if record.severity is not Severity.ERROR:
            continue
        day = utc_day(record.timestamp)
        if day in error_counts:
            error_counts[day] += 1

    events_by_day: dict[date, list[Event]] = defaultdict(list)
    for event in events:
        day = utc_day(event.timestamp)
        if day in error_counts:
            events_by_day[day].append(event)

    return [
        DailyBucket(
            date=day,
            event_count=len(dedupe(events_by_day.get(day, ()), dedup_window)),
            error_count=error_counts[day],
        )
        for day in days
    ]


def bucket_totals(buckets: Sequence[DailyBucket]) -> tuple[int, int]:
    """Return (event_count, error_count) summed over buckets."""
    return (
        sum(b.event_count for b in buckets),
        sum(b.error_count for b in buckets),
    )
