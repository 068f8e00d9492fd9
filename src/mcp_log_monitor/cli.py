from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from mcp_log_monitor.core.analysis import AnalysisFailure, AnalysisResult, analyze
from mcp_log_monitor.core.config import resolve_monitor_config
from mcp_log_monitor.core.filters import FilterCriteria, apply_filters
from mcp_log_monitor.core.models import Severity, format_timestamp
from mcp_log_monitor.core.query import CloudWatchStore, FileLogStore, LogStore
from mcp_log_monitor.core.time_window import resolve_time_window

EXIT_CODES = {"validation": 2, "failed": 3, "timeout": 4, "cancelled": 130}


def _parse_severities(s: str) -> frozenset[Severity]:
    out: set[Severity] = set()
    for part in s.split(","):
        name = part.strip().lower()
        if not name:
            continue
        try:
            out.add(Severity(name))
        except ValueError as e:
            raise argparse.ArgumentTypeError("Invalid severity. Allowed: error, warning, info") from e
    if not out:
        raise argparse.ArgumentTypeError("At least one severity must be provided")
    return frozenset(out)


def _parse_subjects(s: str) -> list[str]:
    return [part.strip() for part in s.split(",") if part.strip()]


def _epoch(dt: datetime) -> int:
    return int(dt.timestamp())


def _print_result(result: AnalysisResult, args: argparse.Namespace) -> None:
    records = result.records
    if args.severities or args.search:
        records = apply_filters(
            records, FilterCriteria(search=args.search, severities=args.severities)
        )
    if args.max_results is not None:
        records = records[: args.max_results]

    for r in records:
        print(f"{format_timestamp(r.timestamp)} [{r.severity.value}] {r.stream} {r.message}")

    print("\nDate        Events  Errors")
    for b in result.daily_stats:
        print(f"{b.date.isoformat()}  {b.event_count:>6}  {b.error_count:>6}")

    if result.activity.locations:
        print("\nLocation    Events  Subjects  Last activity              Status")
        for loc in result.activity.locations:
            last = format_timestamp(loc.last_activity) if loc.last_activity else "-"
            print(
                f"{loc.location_id:<10}  {loc.event_count:>6}  {loc.unique_subjects:>8}  "
                f"{last:<25}  {loc.status.value}"
            )

    print(
        f"\nRecords: {len(result.records)}  Events: {result.event_count}  "
        f"Errors: {result.error_count}  Warnings: {result.warning_count}  "
        f"Subjects: {result.activity.unique_subjects}  Health: {result.insights.health}"
    )
    for line in result.diagnostics:
        print(f"skipped {line}", file=sys.stderr)


def main() -> None:
    p = argparse.ArgumentParser(description="Query and analyze CloudWatch application logs.")
    p.add_argument("--subjects", type=_parse_subjects, required=True, help="Comma-separated subject (location) ids")
    p.add_argument("--version-tag", required=True, help="Software version tag contained in stream names")
    p.add_argument("--limit", type=int, default=None, help="Store result limit (default 1000, max 5000)")
    p.add_argument("--query", default=None, help="Filter expression replacing the subject filter")
    p.add_argument("--from-file", default=None, help="Analyze an exported get-query-results JSON file")
    p.add_argument("--severities", type=_parse_severities, default=None, help="Comma-separated (e.g., error,warning)")
    p.add_argument("--search", default=None, help="Case-insensitive substring filter for printed records")
    p.add_argument("--max", dest="max_results", type=int, default=None, help="Max records to print")
    p.add_argument("--json", dest="as_json", action="store_true", help="Print the full result as JSON")
    p.add_argument(
        "--max-poll-attempts",
        type=int,
        default=None,
        help="Status polls before giving up (default 10, max 30; raise for backfills)",
    )

    # Lookback (simple mode)
    p.add_argument("--hours", type=int, default=24, help="Look back N hours (ignored when --start/--end are set)")
    p.add_argument("--days", type=int, default=None, help="Look back N days instead of --hours")

    # Time window (advanced mode)
    p.add_argument("--start", default=None, help="Epoch seconds/ms or ISO8601 (assumes UTC if tz missing)")
    p.add_argument("--end", default=None, help="Epoch seconds/ms or ISO8601 (assumes UTC if tz missing)")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (UTC day)")
    p.add_argument("--week", default=None, help="YYYY-Www (ISO week, UTC)")
    p.add_argument("--month", default=None, help="YYYY-MM (UTC month)")

    args = p.parse_args()

    try:
        if args.date or args.week or args.month or args.start or args.end:
            since, until = resolve_time_window(
                since=args.start,
                until=args.end,
                date_=args.date,
                week=args.week,
                month=args.month,
            )
        elif args.days is not None:
            since, until = resolve_time_window(days_lookback=args.days)
        else:
            since, until = resolve_time_window(hours_lookback=args.hours)
        if since is None or until is None:
            raise ValueError("Both --start and --end are required when one is given")
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    cfg = resolve_monitor_config()
    store: LogStore = FileLogStore(Path(args.from_file)) if args.from_file else CloudWatchStore.from_config(cfg)
    request = {
        "start_time": _epoch(since),
        "end_time": _epoch(until),
        "subject_ids": args.subjects,
        "version_tag": args.version_tag,
        "limit": args.limit,
        "query": args.query,
        "max_poll_attempts": args.max_poll_attempts,
    }

    try:
        outcome = asyncio.run(analyze(request, store=store, cfg=cfg))
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        raise SystemExit(EXIT_CODES["cancelled"])

    if isinstance(outcome, AnalysisFailure):
        print(f"Error ({outcome.category}): {outcome.message}", file=sys.stderr)
        if outcome.diagnostic:
            print(outcome.diagnostic, file=sys.stderr)
        raise SystemExit(EXIT_CODES.get(outcome.category, 1))

    if args.as_json:
        print(json.dumps(outcome.to_dict(max_records=args.max_results), indent=2))
        return
    _print_result(outcome, args)


if __name__ == "__main__":
    main()
