"""Analysis requests: query the store, then normalize, extract, dedupe and aggregate.

Validation, failed and timed-out queries come back as ``AnalysisFailure``
values rather than exceptions; malformed rows are skipped and reported in
``diagnostics``. The returned object is the only state of an analysis session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .activity import ActivitySummary, summarize_activity
from .aggregate import aggregate
from .config import MAX_POLL_ATTEMPTS_CEILING, MonitorConfig, resolve_monitor_config
from .dedup import dedupe
from .errors import (
    LogMonitorError,
    QueryCancelledError,
    QueryFailedError,
    QueryTimeoutError,
    RequestValidationError,
)
from .events import ExtractionRule, extract
from .filters import list_streams, sort_newest_first
from .insights import InsightsSummary, summarize
from .models import DailyBucket, Event, LogRecord, Severity
from .query.builder import build_query_request
from .query.poller import SleepFn, run_query
from .query.store import LogStore
from .records import normalize_batch_parallel

logger = logging.getLogger(__name__)

TimeValue = int | float | str | datetime


class AnalysisRequest(BaseModel):
    start_time: TimeValue = Field(description="Epoch seconds/milliseconds or ISO-8601.")
    end_time: TimeValue = Field(description="Epoch seconds/milliseconds or ISO-8601.")
    subject_ids: list[str | int] = Field(min_length=1, description="Source (location) ids.")
    version_tag: str = Field(min_length=1, description="Software version tag in the stream name.")
    limit: int | None = Field(default=None, ge=1, description="Result limit (clamped).")
    query: str | None = Field(default=None, description="Store filter expression override.")
    max_poll_attempts: int | None = Field(default=None, ge=1, le=MAX_POLL_ATTEMPTS_CEILING)


@dataclass(frozen=True, slots=True)
class AnalysisFailure:
    """Structured failure: ``category`` is validation, failed, timeout or cancelled."""

    category: str
    message: str
    diagnostic: str | None = None

    @classmethod
    def from_error(cls, exc: LogMonitorError) -> AnalysisFailure:
        return cls(
            category=exc.category,
            message=str(exc),
            diagnostic=getattr(exc, "diagnostic", None),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"status": "error", "category": self.category, "message": self.message}
        if self.diagnostic:
            d["diagnostic"] = self.diagnostic
        return d


@dataclass(frozen=True, slots=True)
class AnalysisResult:
    records: list[LogRecord]  # newest first
    events: list[Event]  # deduplicated, newest first
    daily_stats: list[DailyBucket]
    event_count: int
    error_count: int
    warning_count: int
    insights: InsightsSummary
    activity: ActivitySummary = field(default_factory=ActivitySummary)
    diagnostics: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.records

    def to_dict(self, *, max_records: int | None = None) -> dict[str, Any]:
        records = self.records if max_records is None else self.records[:max_records]
        return {
            "status": "ok",
            "empty": self.empty,
            "record_count": len(self.records),
            "records": [r.to_dict() for r in records],
            "events": [e.to_dict() for e in self.events],
            "daily_stats": [b.to_dict() for b in self.daily_stats],
            "event_count": self.event_count,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "insights": self.insights.to_dict(),
            "activity": self.activity.to_dict(),
            "diagnostics": self.diagnostics,
        }


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid analysis request: " + "; ".join(parts)


def build_result(
    records: Sequence[LogRecord],
    *,
    cfg: MonitorConfig,
    rule: ExtractionRule | None = None,
    diagnostics: Sequence[str] = (),
    today: date | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """Run extraction, dedup and aggregation over a normalized record set."""
    ordered = sort_newest_first(records)
    rule = rule or ExtractionRule(require_redaction=cfg.require_redaction)

    candidates = extract(ordered, rule)
    events = dedupe(candidates, cfg.dedup_window)
    buckets = aggregate(
        ordered,
        candidates,
        cfg.window_days,
        dedup_window=cfg.dedup_window,
        today=today,
    )

    return AnalysisResult(
        records=ordered,
        events=events,
        daily_stats=buckets,
        event_count=len(events),
        error_count=sum(1 for r in ordered if r.severity is Severity.ERROR),
        warning_count=sum(1 for r in ordered if r.severity is Severity.WARNING),
        insights=summarize(ordered),
        activity=summarize_activity(events, streams=list_streams(ordered), now=now),
        diagnostics=list(diagnostics),
    )


async def analyze_rows(
    rows: Sequence[object],
    *,
    cfg: MonitorConfig | None = None,
    rule: ExtractionRule | None = None,
    today: date | None = None,
    now: datetime | None = None,
    max_workers: int | None = None,
) -> AnalysisResult:
    """Post-process an already fetched batch of raw rows."""
    cfg = resolve_monitor_config(cfg)
    batch = await normalize_batch_parallel(rows, now=now, max_workers=max_workers)
    if batch.skipped:
        logger.warning("Skipped %s malformed rows out of %s", batch.skipped, len(rows))
    return build_result(
        batch.records,
        cfg=cfg,
        rule=rule,
        diagnostics=batch.diagnostics,
        today=today,
        now=now,
    )


async def analyze(
    request: AnalysisRequest | Mapping[str, Any],
    *,
    store: LogStore,
    cfg: MonitorConfig | None = None,
    rule: ExtractionRule | None = None,
    sleep: SleepFn = asyncio.sleep,
    today: date | None = None,
    now: datetime | None = None,
) -> AnalysisResult | AnalysisFailure:
    """Validate, query the store and analyze the returned batch."""
    cfg = resolve_monitor_config(cfg)

    try:
        req = (
            request
            if isinstance(request, AnalysisRequest)
            else AnalysisRequest.model_validate(request)
        )
        query_request = build_query_request(
            start_time=req.start_time,
            end_time=req.end_time,
            subject_ids=req.subject_ids,
            version_tag=req.version_tag,
            cfg=cfg,
            limit=req.limit,
            expression=req.query,
        )
    except ValidationError as exc:
        return AnalysisFailure(category="validation", message=_format_validation_error(exc))
    except RequestValidationError as exc:
        return AnalysisFailure.from_error(exc)

    try:
        rows = await run_query(
            store,
            query_request,
            cfg=cfg,
            max_attempts=req.max_poll_attempts,
            sleep=sleep,
        )
    except (QueryFailedError, QueryTimeoutError, QueryCancelledError) as exc:
        logger.warning("Analysis query ended with %s: %s", exc.category, exc)
        return AnalysisFailure.from_error(exc)

    return await analyze_rows(rows, cfg=cfg, rule=rule, today=today, now=now)
