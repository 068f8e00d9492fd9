"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: analyze and search CloudWatch (or exported) log query results
- Resources: configuration, keyword tables and a sample result payload
- Prompts: reusable investigation templates that clients can invoke

Run locally (stdio):
    python -m mcp_log_monitor.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_monitor.prompts.registry import register_prompts
from mcp_log_monitor.resources.registry import register_resources
from mcp_log_monitor.tools.analysis import analyze_logs_impl, search_logs_impl

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure logging on stderr; stdout carries the stdio transport."""
    level_name = os.getenv("LOG_MONITOR_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


mcp = FastMCP("log-monitor", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def analyze_logs(
    start_time: int | str,
    end_time: int | str,
    subject_ids: Sequence[str | int],
    version_tag: str,
    limit: int | None = None,
    query: str | None = None,
    source_file: str | None = None,
    limit_results: int | None = None,
    max_poll_attempts: int | None = None,
) -> dict[str, Any]:
    """Query application logs for a set of subjects and analyze them.

    Parameters
    ----------
    start_time/end_time:
        Epoch seconds, epoch milliseconds or ISO-8601 (UTC assumed when the zone is omitted).
    subject_ids:
        Source (location) ids; non-digit characters are stripped.
    version_tag:
        Software version tag that log stream names contain (e.g., "2.4.1").
    limit:
        Store result limit (default 1000, capped at 5000).
    query:
        Optional filter expression that replaces the generated subject filter.
    source_file:
        Read an exported get-query-results JSON file (under LOG_MONITOR_BASE_DIR)
        instead of calling CloudWatch.
    limit_results:
        Maximum number of records included in the response (counts cover all records).
    max_poll_attempts:
        Status polls before giving up (default 10 or LOG_MONITOR_MAX_POLL_ATTEMPTS, max 30).
        Raise it for long backfills.

    Returns
    -------
    dict:
        {"status": "ok", "records", "events", "daily_stats", "event_count",
        "error_count", "warning_count", "insights", "activity", "empty",
        "diagnostics"}
        or {"status": "error", "category", "message"}.
    """
    return await analyze_logs_impl(
        start_time=start_time,
        end_time=end_time,
        subject_ids=subject_ids,
        version_tag=version_tag,
        limit=limit,
        query=query,
        source_file=source_file,
        limit_results=limit_results,
        max_poll_attempts=max_poll_attempts,
    )


@mcp.tool()
async def search_logs(
    start_time: int | str,
    end_time: int | str,
    subject_ids: Sequence[str | int],
    version_tag: str,
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
    limit: int | None = None,
    query: str | None = None,
    source_file: str | None = None,
    limit_results: int | None = None,
    max_poll_attempts: int | None = None,
) -> dict[str, Any]:
    """Query logs, then filter the records like a log viewer.

    Parameters
    ----------
    start_time/end_time/subject_ids/version_tag/limit/query/source_file/max_poll_attempts:
        Same as analyze_logs.
    search:
        Case-insensitive substring matched against message or stream.
    severities:
        Severity names (info, warning, error). Case-insensitive.
    since/until/date:
        Narrow the fetched records to a window (since inclusive, until exclusive)
        or to one UTC day (YYYY-MM-DD).
    week/month:
        One ISO week (YYYY-Www) or calendar month (YYYY-MM), UTC.
    days:
        The last N days up to now.
    streams:
        Only records from these log streams.
    drop_duplicates:
        Keep the newest record of each exact (message, stream) pair.
    error_category:
        Named category (e.g., "Network", "Database"); see
        app://log-monitor/config/error-categories.
    exact_message:
        Only records whose message equals this text exactly.
    limit_results:
        Maximum number of records returned.

    Returns
    -------
    dict:
        {"status": "ok", "total": int, "count": int, "streams": list[str],
        "records": list[dict], "diagnostics": list[str]}
    """
    return await search_logs_impl(
        start_time=start_time,
        end_time=end_time,
        subject_ids=subject_ids,
        version_tag=version_tag,
        limit=limit,
        query=query,
        source_file=source_file,
        search=search,
        severities=severities,
        since=since,
        until=until,
        date=date,
        week=week,
        month=month,
        days=days,
        streams=streams,
        drop_duplicates=drop_duplicates,
        error_category=error_category,
        exact_message=exact_message,
        limit_results=limit_results,
        max_poll_attempts=max_poll_attempts,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
