"""Query construction: input sanitization and the store query expression."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime

from ..config import MonitorConfig
from ..errors import RequestValidationError
from ..records.timestamps import parse_timestamp
from .store import QueryRequest

_NON_DIGIT_RE = re.compile(r"[^0-9]")
_VERSION_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9.-]")

QUERY_FIELDS = "fields @timestamp, @message, @logStream"


def to_epoch_seconds(value: int | float | str | datetime) -> int:
    """Convert epoch seconds/milliseconds, ISO text or a datetime to epoch seconds."""
    ts = parse_timestamp(value)
    if ts is None:
        raise RequestValidationError(f"Invalid time value: {value!r}")
    return int(ts.timestamp())


def sanitize_subject_ids(subject_ids: Iterable[object]) -> list[str]:
    """Keep digits only; drop ids that end up empty."""
    out: list[str] = []
    for raw in subject_ids:
        cleaned = _NON_DIGIT_RE.sub("", str(raw))
        if cleaned and cleaned not in out:
            out.append(cleaned)
    return out


def sanitize_version_tag(version_tag: object) -> str:
    return _VERSION_UNSAFE_RE.sub("", str(version_tag or ""))


def resolve_limit(limit: int | None, cfg: MonitorConfig) -> int:
    """Default the limit and clamp it to the configured hard ceiling."""
    if limit is None:
        limit = cfg.default_limit
    if limit <= 0:
        raise RequestValidationError("limit must be > 0")
    return min(limit, cfg.hard_limit)


def build_query_string(
    subject_ids: Iterable[str],
    version_tag: str,
    limit: int,
    *,
    expression: str | None = None,
) -> str:
    """Build the store query. ``expression`` replaces the generated filter lines."""
    lines = [QUERY_FIELDS]
    if expression:
        lines.append(expression.strip().removeprefix("|").strip())
    else:
        if version_tag:
            lines.append(f"filter @logStream like '[{version_tag}]'")
        ids = list(subject_ids)
        if ids:
            clauses = " or ".join(f"@logStream like '[{sid}]'" for sid in ids)
            lines.append(f"filter {clauses}")
    lines.append("sort @timestamp desc")
    lines.append(f"limit {limit}")
    return "\n| ".join(lines)


def build_query_request(
    *,
    start_time: int | float | str | datetime,
    end_time: int | float | str | datetime,
    subject_ids: Iterable[object],
    version_tag: str,
    cfg: MonitorConfig,
    limit: int | None = None,
    expression: str | None = None,
) -> QueryRequest:
    """Sanitize inputs and build a store request."""
    start = to_epoch_seconds(start_time)
    end = to_epoch_seconds(end_time)
    if start >= end:
        raise RequestValidationError("start_time must be before end_time")

    ids = sanitize_subject_ids(subject_ids)
    if not ids:
        raise RequestValidationError("At least one numeric subject id is required")

    version = sanitize_version_tag(version_tag)
    if not version:
        raise RequestValidationError("version_tag must contain letters, digits, dots or dashes")

    resolved_limit = resolve_limit(limit, cfg)
    return QueryRequest(
        log_group=cfg.log_group,
        start_time=start,
        end_time=end,
        query_string=build_query_string(ids, version, resolved_limit, expression=expression),
        limit=resolved_limit,
    )
