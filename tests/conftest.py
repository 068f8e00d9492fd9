from __future__ import annotations

import json
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from mcp_log_monitor.core.config import MonitorConfig
from mcp_log_monitor.core.models import LogRecord, Severity
from mcp_log_monitor.core.query.store import QueryRequest, QueryResult
from mcp_log_monitor.core.severity import classify

_ENV_VARS = (
    "LOG_MONITOR_LOG_GROUP",
    "LOG_MONITOR_AWS_REGION",
    "LOG_MONITOR_AWS_PROFILE",
    "LOG_MONITOR_POLL_INTERVAL",
    "LOG_MONITOR_MAX_POLL_ATTEMPTS",
    "LOG_MONITOR_DEDUP_WINDOW_SECONDS",
    "LOG_MONITOR_WINDOW_DAYS",
    "LOG_MONITOR_REQUIRE_REDACTION",
    "LOG_MONITOR_MAX_WORKERS",
    "LOG_MONITOR_BASE_DIR",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class FakeStore:
    """In-memory log store that replays scripted status responses."""

    def __init__(
        self,
        responses: Sequence[QueryResult],
        *,
        query_id: str = "q-1",
        start_error: Exception | None = None,
        poll_error: Exception | None = None,
    ) -> None:
        self.responses = list(responses)
        self.query_id = query_id
        self.start_error = start_error
        self.poll_error = poll_error
        self.requests: list[QueryRequest] = []
        self.polls = 0
        self.stopped: list[str] = []

    async def start_query(self, request: QueryRequest) -> str:
        self.requests.append(request)
        if self.start_error is not None:
            raise self.start_error
        return self.query_id

    async def get_query_results(self, query_id: str) -> QueryResult:
        self.polls += 1
        if self.poll_error is not None:
            raise self.poll_error
        index = min(self.polls - 1, len(self.responses) - 1)
        return self.responses[index]

    async def stop_query(self, query_id: str) -> None:
        self.stopped.append(query_id)


@pytest.fixture
def fake_store() -> Callable[..., FakeStore]:
    return FakeStore


@pytest.fixture
def make_record() -> Callable[..., LogRecord]:
    def _make(
        ts: datetime,
        message: str,
        stream: str = "stream-a",
        severity: Severity | None = None,
    ) -> LogRecord:
        return LogRecord(
            timestamp=ts,
            message=message,
            stream=stream,
            severity=severity or classify(message),
        )

    return _make


@pytest.fixture
def field_row() -> Callable[..., list[dict[str, str]]]:
    def _row(ts: str, message: str, stream: str = "2.4.1/site-12/frontend") -> list[dict[str, str]]:
        return [
            {"field": "@timestamp", "value": ts},
            {"field": "@message", "value": message},
            {"field": "@logStream", "value": stream},
            {"field": "@ptr", "value": "CmAKJgoi"},
        ]

    return _row


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]) -> Callable[[float], Any]:
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def cfg() -> MonitorConfig:
    return MonitorConfig(poll_interval=0.0)


@pytest.fixture
def write_results() -> Callable[..., None]:
    def _write(path: Path, rows: list[Any], status: str = "Complete") -> None:
        path.write_text(json.dumps({"status": status, "results": rows}), encoding="utf-8")

    return _write
