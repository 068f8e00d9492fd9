"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from mcp_log_monitor.core.analysis import AnalysisFailure, AnalysisResult, analyze
from mcp_log_monitor.core.config import MonitorConfig, resolve_monitor_config
from mcp_log_monitor.core.filters import FilterCriteria, apply_filters, list_streams
from mcp_log_monitor.core.insights import resolve_error_category
from mcp_log_monitor.core.models import Severity
from mcp_log_monitor.core.query import CloudWatchStore, FileLogStore, LogStore
from mcp_log_monitor.core.time_window import resolve_time_window

logger = logging.getLogger(__name__)

BASE_DIR_ENV = "LOG_MONITOR_BASE_DIR"
DEFAULT_RESULT_LIMIT = 200
ALL_SEVERITIES = [s.value for s in Severity]


def base_dir() -> Path:
    """Return the resolved base directory for exported result files."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def build_store(source_file: str | None, cfg: MonitorConfig) -> LogStore:
    """Use an exported result file when given, else the CloudWatch CLI."""
    if source_file:
        return FileLogStore(safe_resolve(source_file))
    return CloudWatchStore.from_config(cfg)


def _parse_severities(severities: Sequence[str] | None) -> frozenset[Severity] | None:
    """Parse user-supplied severity names into Severity enums."""
    if not severities:
        return None
    out: set[Severity] = set()
    for s in severities:
        name = s.strip().lower()
        if not name:
            continue
        try:
            out.add(Severity(name))
        except ValueError as e:
            valid = ", ".join(ALL_SEVERITIES)
            raise ValueError(
                f"Unknown severity '{s}'. Valid values: {valid}. "
                "Tip: severities are case-insensitive (e.g., 'ERROR', 'warning')."
            ) from e
    return frozenset(out) or None


def _resolve_result_limit(limit_results: int | None, cfg: MonitorConfig) -> int:
    if limit_results is None:
        return DEFAULT_RESULT_LIMIT
    if limit_results <= 0:
        raise ValueError("limit_results must be > 0")
    return min(limit_results, cfg.hard_limit)


async def _run(
    *,
    start_time: int | float | str,
    end_time: int | float | str,
    subject_ids: Sequence[str | int],
    version_tag: str,
    limit: int | None,
    query: str | None,
    source_file: str | None,
    max_poll_attempts: int | None,
    cfg: MonitorConfig,
) -> AnalysisResult | AnalysisFailure:
    store = build_store(source_file, cfg)
    request = {
        "start_time": start_time,
        "end_time": end_time,
        "subject_ids": list(subject_ids),
        "version_tag": version_tag,
        "limit": limit,
        "query": query,
        "max_poll_attempts": max_poll_attempts,
    }
    return await analyze(request, store=store, cfg=cfg)


async def analyze_logs_impl(
    *,
    start_time: int | float | str,
    end_time: int | float | str,
    subject_ids: Sequence[str | int],
    version_tag: str,
    limit: int | None = None,
    query: str | None = None,
    source_file: str | None = None,
    limit_results: int | None = None,
    max_poll_attempts: int | None = None,
    cfg: MonitorConfig | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_logs` MCP tool.

    Failures (validation, failed query, timeout) are returned as
    ``{"status": "error", ...}`` rather than raised.
    """
    cfg = resolve_monitor_config(cfg)
    max_records = _resolve_result_limit(limit_results, cfg)
    outcome = await _run(
        start_time=start_time,
        end_time=end_time,
        subject_ids=subject_ids,
        version_tag=version_tag,
        limit=limit,
        query=query,
        source_file=source_file,
        max_poll_attempts=max_poll_attempts,
        cfg=cfg,
    )
    if isinstance(outcome, AnalysisFailure):
        return outcome.to_dict()
    return outcome.to_dict(max_records=max_records)


async def search_logs_impl(
    *,
    start_time: int | float | str,
    end_time: int | float | str,
    subject_ids: Sequence[str | int],
    version_tag: str,
    limit: int | None = None,
    query: str | None = None,
    source_file: str | None = None,
    search: str | None = None,
    severities: Sequence[str] | None = None,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    week: str | None = None,
    month: str | None = None,
    days: int | None = None,
    streams: Sequence[str] | None = None,
    drop_duplicates: bool = False,
    error_category: str | None = None,
    exact_message: str | None = None,
    limit_results: int | None = None,
    max_poll_attempts: int | None = None,
    cfg: MonitorConfig | None = None,
) -> dict[str, Any]:
    """Implementation for the `search_logs` MCP tool.

    Notes
    -----
    - The store query always covers start_time/end_time; the window
      selectors (since/until, date, week, month, days) narrow the fetched
      records afterwards. date, week and month win over days, and days over
      since/until.
    - Filter arguments are validated before the store is queried.
    """
    cfg = resolve_monitor_config(cfg)
    max_records = _resolve_result_limit(limit_results, cfg)
    window_since, window_until = resolve_time_window(
        since=since,
        until=until,
        date_=date,
        week=week,
        month=month,
        days_lookback=days,
    )
    if error_category:
        resolve_error_category(error_category)
    criteria = FilterCriteria(
        search=search or None,
        severities=_parse_severities(severities),
        since=window_since,
        until=window_until,
        streams=frozenset(streams) if streams else None,
        drop_duplicates=drop_duplicates,
        error_category=error_category or None,
        exact_message=exact_message or None,
    )

    outcome = await _run(
        start_time=start_time,
        end_time=end_time,
        subject_ids=subject_ids,
        version_tag=version_tag,
        limit=limit,
        query=query,
        source_file=source_file,
        max_poll_attempts=max_poll_attempts,
        cfg=cfg,
    )
    if isinstance(outcome, AnalysisFailure):
        return outcome.to_dict()

    matched = apply_filters(outcome.records, criteria)
    logger.debug("search_logs matched %s of %s records", len(matched), len(outcome.records))
    return {
        "status": "ok",
        "total": len(outcome.records),
        "count": len(matched),
        "streams": list_streams(outcome.records),
        "records": [r.to_dict() for r in matched[:max_records]],
        "diagnostics": outcome.diagnostics,
    }
