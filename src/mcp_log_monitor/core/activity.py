"""Per-location activity summary for extracted events.

A location id is the ``[<digits>]`` segment of a stream name. A location with
events is ``warning`` once it has been idle for five hours during business
hours (Mon-Fri 09:00-17:00 UTC) and ``active`` otherwise; a location seen only
in record streams, with no events, is ``inactive``.
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from .models import Event, format_timestamp

UNKNOWN_LOCATION = "unknown"
INACTIVITY_THRESHOLD = timedelta(hours=5)
BUSINESS_START_HOUR = 9
BUSINESS_END_HOUR = 17

_LOCATION_RE = re.compile(r"\[(\d+)\]")


class ActivityStatus(str, Enum):
    ACTIVE = "active"
    WARNING = "warning"
    INACTIVE = "inactive"


class CaptureType(str, Enum):
    PANORAMIC = "PANORAMIC"
    PERIAPICAL = "PERIAPICAL"


def location_of(stream: str | None) -> str:
    """Return the bracketed numeric location id of a stream, or ``"unknown"``."""
    if not stream:
        return UNKNOWN_LOCATION
    m = _LOCATION_RE.search(stream)
    return m.group(1) if m else UNKNOWN_LOCATION


def capture_type(message: str) -> CaptureType:
    if "periapical" in message.lower():
        return CaptureType.PERIAPICAL
    return CaptureType.PANORAMIC


def is_business_hours(now: datetime) -> bool:
    now = now.astimezone(UTC)
    return now.weekday() < 5 and BUSINESS_START_HOUR <= now.hour < BUSINESS_END_HOUR


def is_idle(last_activity: datetime | None, now: datetime) -> bool:
    """True when nothing happened in the last five business hours.

    Outside business hours a location is never considered idle.
    """
    if last_activity is None:
        return True
    if not is_business_hours(now):
        return False
    return last_activity < now - INACTIVITY_THRESHOLD


def location_status(event_count: int, last_activity: datetime | None, now: datetime) -> ActivityStatus:
    if event_count <= 0:
        return ActivityStatus.INACTIVE
    return ActivityStatus.WARNING if is_idle(last_activity, now) else ActivityStatus.ACTIVE


@dataclass(frozen=True, slots=True)
class LocationActivity:
    location_id: str
    event_count: int
    type_counts: dict[str, int]
    unique_subjects: int
    last_activity: datetime | None
    status: ActivityStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "location_id": self.location_id,
            "event_count": self.event_count,
            "type_counts": dict(self.type_counts),
            "unique_subjects": self.unique_subjects,
            "last_activity": format_timestamp(self.last_activity) if self.last_activity else None,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class ActivitySummary:
    locations: list[LocationActivity] = field(default_factory=list)
    unique_subjects: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "unique_subjects": self.unique_subjects,
            "locations": [loc.to_dict() for loc in self.locations],
        }


def summarize_activity(
    events: Iterable[Event],
    *,
    streams: Iterable[str] = (),
    now: datetime | None = None,
) -> ActivitySummary:
    """Group events by location and assign each location its status.

    ``streams`` adds locations that logged records but produced no events; they
    are reported ``inactive``. Locations are ordered by id, ``unknown`` last.
    """
    now = now or datetime.now(UTC)

    by_location: dict[str, list[Event]] = defaultdict(list)
    subjects: set[str] = set()
    for event in events:
        by_location[location_of(event.stream)].append(event)
        subjects.add(event.subject_key)

    for stream in streams:
        loc = location_of(stream)
        if loc != UNKNOWN_LOCATION:
            by_location.setdefault(loc, [])

    locations: list[LocationActivity] = []
    for loc, loc_events in by_location.items():
        last = max((e.timestamp for e in loc_events), default=None)
        types = Counter(capture_type(e.message).value for e in loc_events)
        locations.append(
            LocationActivity(
                location_id=loc,
                event_count=len(loc_events),
                type_counts=dict(sorted(types.items())),
                unique_subjects=len({e.subject_key for e in loc_events}),
                last_activity=last,
                status=location_status(len(loc_events), last, now),
            )
        )

    locations.sort(key=lambda a: (a.location_id == UNKNOWN_LOCATION, _sort_key(a.location_id)))
    return ActivitySummary(locations=locations, unique_subjects=len(subjects))


def _sort_key(location_id: str) -> tuple[int, str]:
    return (int(location_id), "") if location_id.isdigit() else (0, location_id)
