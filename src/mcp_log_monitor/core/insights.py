"""Summary statistics over a normalized record set."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC

from .models import LogRecord, Severity

ERROR_CATEGORIES: dict[str, re.Pattern[str]] = {
    "Sentry": re.compile(r"sentry", re.IGNORECASE),
    "Axios": re.compile(r"axios|fetch|http", re.IGNORECASE),
    "Network": re.compile(r"network|connection|timeout|socket|dns|offline", re.IGNORECASE),
    "Authentication": re.compile(
        r"auth|unauthorized|forbidden|login|permission|access denied", re.IGNORECASE
    ),
    "Database": re.compile(r"db|database|query|sql|mongo|postgres|mysql|oracle", re.IGNORECASE),
    "Validation": re.compile(r"validation|invalid|error|schema|type|constraint", re.IGNORECASE),
    "Rendering": re.compile(r"render|component|ui|interface|display", re.IGNORECASE),
    "Memory": re.compile(r"memory|allocation|heap|stack|overflow", re.IGNORECASE),
    "Performance": re.compile(r"performance|slow|latency|timeout", re.IGNORECASE),
    "Syntax": re.compile(r"syntax|parse|token|unexpected", re.IGNORECASE),
}

_PATTERN_EXTRACTORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"Exception: ([\w.]+)", re.IGNORECASE),
    re.compile(r"Error: ([\w.]+)", re.IGNORECASE),
    re.compile(r"at ([^(]+)\(", re.IGNORECASE),
    re.compile(r"Failed to ([^:]+)", re.IGNORECASE),
    re.compile(r"(\d{3}) [A-Z]+ ", re.IGNORECASE),
)


@dataclass(frozen=True, slots=True)
class InsightsSummary:
    total: int
    severity_counts: dict[str, int]
    error_rate: float
    hourly_distribution: list[dict[str, int]]
    common_patterns: list[dict[str, object]]
    error_categories: dict[str, int]
    health: str
    summary: str = ""
    streams: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "severity_counts": self.severity_counts,
            "error_rate": self.error_rate,
            "hourly_distribution": self.hourly_distribution,
            "common_patterns": self.common_patterns,
            "error_categories": self.error_categories,
            "health": self.health,
            "summary": self.summary,
            "streams": self.streams,
        }


def resolve_error_category(name: str) -> re.Pattern[str]:
    """Look up a named error category (case-insensitive)."""
    for key, pattern in ERROR_CATEGORIES.items():
        if key.lower() == name.strip().lower():
            return pattern
    valid = ", ".join(ERROR_CATEGORIES)
    raise ValueError(f"Unknown error category '{name}'. Valid values: {valid}.")


def severity_counts(records: Iterable[LogRecord]) -> dict[str, int]:
    counts = Counter(r.severity for r in records)
    return {s.value: counts.get(s, 0) for s in Severity}


def error_rate(records: Sequence[LogRecord]) -> float:
    """Fraction of records classified as errors (0.0 for an empty set)."""
    if not records:
        return 0.0
    errors = sum(1 for r in records if r.severity is Severity.ERROR)
    return errors / len(records)


def hourly_distribution(records: Iterable[LogRecord]) -> list[dict[str, int]]:
    """Record counts per UTC hour of day, sorted by hour."""
    counts = Counter(r.timestamp.astimezone(UTC).hour for r in records)
    return [{"hour": hour, "count": counts[hour]} for hour in sorted(counts)]


def common_error_patterns(records: Iterable[LogRecord], *, top: int = 10) -> list[dict[str, object]]:
    """Most frequent exception/error fragments found in error records."""
    patterns: Counter[str] = Counter()
    for r in records:
        if r.severity is not Severity.ERROR:
            continue
        for regex in _PATTERN_EXTRACTORS:
            m = regex.search(r.message)
            if m and m.group(1):
                patterns[m.group(1).strip()] += 1
    ranked = sorted(patterns.items(), key=lambda kv: (-kv[1], kv[0]))
    return [{"pattern": p, "count": c} for p, c in ranked[:top]]


def categorize_errors(records: Iterable[LogRecord]) -> dict[str, int]:
    """Count error records per named category (a record may hit several)."""
    counts = dict.fromkeys(ERROR_CATEGORIES, 0)
    for r in records:
        if r.severity is not Severity.ERROR:
            continue
        for name, regex in ERROR_CATEGORIES.items():
            if regex.search(r.message):
                counts[name] += 1
    return counts


def system_health(error_count: int, warning_count: int) -> str:
    if error_count > 0:
        return "critical"
    if warning_count > 0:
        return "warning"
    return "healthy"


def summarize(records: Sequence[LogRecord]) -> InsightsSummary:
    """Build the insights block shown next to the record list."""
    counts = severity_counts(records)
    rate = error_rate(records)
    errors = counts[Severity.ERROR.value]
    warnings = counts[Severity.WARNING.value]

    lines = [
        f"Analyzed {len(records)} log entries",
        f"Found {errors} errors ({rate * 100:.2f}% error rate)",
        f"Detected {warnings} warnings",
    ]
    if errors:
        lines.append("There are errors in the logs that require attention.")
    else:
        lines.append("No major errors detected in the logs.")

    return InsightsSummary(
        total=len(records),
        severity_counts=counts,
        error_rate=rate,
        hourly_distribution=hourly_distribution(records),
        common_patterns=common_error_patterns(records),
        error_categories=categorize_errors(records),
        health=system_health(errors, warnings),
        summary="\n".join(lines),
        streams=sorted({r.stream for r in records}),
    )
