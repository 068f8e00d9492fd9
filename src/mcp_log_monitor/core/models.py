"""Core data models for log monitoring."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """Normalized severity assigned to every canonical record."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class QueryStatus(str, Enum):
    """Query status as reported by the log store."""

    SCHEDULED = "Scheduled"
    RUNNING = "Running"
    COMPLETE = "Complete"
    FAILED = "Failed"
    CANCELLED = "Cancelled"
    TIMEOUT = "Timeout"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: object) -> QueryStatus:
        """Map a store status string onto the enum (unknown values -> UNKNOWN)."""
        if isinstance(value, QueryStatus):
            return value
        name = str(value or "").strip().lower()
        for status in cls:
            if status.value.lower() == name:
                return status
        return cls.UNKNOWN


class SessionStatus(str, Enum):
    """Lifecycle of one submitted query, as seen by the poller."""

    RUNNING = "running"
    COMPLETE = "complete"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionStatus.RUNNING


@dataclass(frozen=True, slots=True)
class RawField:
    """One ``{field, value}`` pair of a column-oriented result row."""

    field: str
    value: str


@dataclass(frozen=True, slots=True)
class FieldRecord:
    """Column-oriented raw row (field names carry the ``@`` sentinel)."""

    fields: tuple[RawField, ...]

    def get(self, name: str) -> str | None:
        """Return the first value for an exact (case-sensitive) field name."""
        for f in self.fields:
            if f.field == name:
                return f.value
        return None


@dataclass(frozen=True, slots=True)
class FlatRecord:
    """Raw row that already arrives as an object with named attributes."""

    attributes: Mapping[str, Any]


RawRecord = FieldRecord | FlatRecord


@dataclass(frozen=True, slots=True)
class LogRecord:
    """Canonical record produced by the normalizer; read-only afterwards."""

    timestamp: datetime  # always aware UTC
    message: str
    stream: str
    severity: Severity

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_timestamp(self.timestamp),
            "message": self.message,
            "stream": self.stream,
            "severity": self.severity.value,
        }


@dataclass(frozen=True, slots=True)
class Event:
    """Domain event (e.g. a treatment creation) derived from a record."""

    timestamp: datetime
    subject_key: str  # partially redacted identifier, e.g. "Jo** Sm**"
    kind: str
    stream: str = "unknown"
    message: str = ""  # source record message; not serialized

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": format_timestamp(self.timestamp),
            "subject_key": self.subject_key,
            "kind": self.kind,
            "stream": self.stream,
        }


@dataclass(frozen=True, slots=True)
class DailyBucket:
    """Per-day counters for the trailing dashboard window."""

    date: date
    event_count: int = 0
    error_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "event_count": self.event_count,
            "error_count": self.error_count,
        }


def format_timestamp(ts: datetime) -> str:
    """Render an aware timestamp as ISO-8601 UTC with a ``Z`` suffix."""
    return ts.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
