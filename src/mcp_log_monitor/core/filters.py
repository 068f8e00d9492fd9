"""Composable record filters for the log viewer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from .insights import resolve_error_category
from .models import LogRecord, Severity
from .records.timestamps import parse_timestamp


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """All predicates are ANDed; ``None`` (or empty) disables a predicate."""

    search: str | None = None  # case-insensitive, message or stream
    severities: frozenset[Severity] | None = None
    since: datetime | None = None  # inclusive
    until: datetime | None = None  # exclusive
    streams: frozenset[str] | None = None
    drop_duplicates: bool = False  # exact (message, stream) matches
    error_category: str | None = None
    exact_message: str | None = None


def sort_newest_first(records: Iterable[LogRecord]) -> list[LogRecord]:
    """Stable sort by timestamp, newest first."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)


def list_streams(records: Iterable[LogRecord]) -> list[str]:
    return sorted({r.stream for r in records})


def apply_filters(records: Sequence[LogRecord], criteria: FilterCriteria) -> list[LogRecord]:
    """Filter the full record set. Pure: call again whenever criteria change.

    Naive ``since``/``until`` bounds are taken as UTC.
    """
    since = parse_timestamp(criteria.since)
    until = parse_timestamp(criteria.until)
    if since is not None and until is not None and since >= until:
        raise ValueError("since must be < until")

    term = criteria.search.lower() if criteria.search else None
    category = resolve_error_category(criteria.error_category) if criteria.error_category else None

    out: list[LogRecord] = []
    seen: set[tuple[str, str]] = set()

    for r in sort_newest_first(records):
        if term is not None and term not in r.message.lower() and term not in r.stream.lower():
            continue
        if criteria.severities and r.severity not in criteria.severities:
            continue
        if since is not None and r.timestamp < since:
            continue
        if until is not None and r.timestamp >= until:
            continue
        if criteria.streams and r.stream not in criteria.streams:
            continue
        if category is not None and not category.search(r.message):
            continue
        if criteria.exact_message is not None and r.message != criteria.exact_message:
            continue
        if criteria.drop_duplicates:
            key = (r.message, r.stream)
            if key in seen:
                continue
            seen.add(key)
        out.append(r)

    return out
