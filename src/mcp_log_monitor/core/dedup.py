"""Time-proximity deduplication of repeated event emissions."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import timedelta

from .models import Event

DEFAULT_DEDUP_WINDOW = timedelta(seconds=60)


def _ascending_key(e: Event) -> tuple:
    return (e.timestamp, e.stream, e.kind)


def dedupe(events: Iterable[Event], window: timedelta = DEFAULT_DEDUP_WINDOW) -> list[Event]:
    """Collapse bursts of events for the same subject into one event.

    Within each subject group (sorted ascending), an event is kept when it is at
    least ``window`` after the last kept event; closer events are duplicates.
    The result is ordered newest first.
    """
    if window < timedelta(0):
        raise ValueError("window must be >= 0")

    # Whole-group pass first: a decision needs every event of the subject.
    groups: dict[str, list[Event]] = defaultdict(list)
    for e in events:
        groups[e.subject_key].append(e)

    kept: list[Event] = []
    for group in groups.values():
        group.sort(key=_ascending_key)
        last: Event | None = None
        for e in group:
            if last is None or e.timestamp - last.timestamp >= window:
                kept.append(e)
                last = e

    kept.sort(key=lambda e: (e.timestamp, e.subject_key), reverse=True)
    return kept
