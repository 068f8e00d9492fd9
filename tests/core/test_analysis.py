from __future__ import annotations

from datetime import UTC, date, datetime

import pytest

from mcp_log_monitor.core.analysis import AnalysisFailure, AnalysisResult, analyze
from mcp_log_monitor.core.models import QueryStatus
from mcp_log_monitor.core.query import QueryResult

TODAY = date(2025, 12, 30)
NOW = datetime(2025, 12, 30, 12, 0, tzinfo=UTC)

REQUEST = {
    "start_time": "2025-12-24T00:00:00Z",
    "end_time": "2025-12-31T00:00:00Z",
    "subject_ids": ["12"],
    "version_tag": "2.4.1",
}


def _complete(rows: list[object]) -> QueryResult:
    return QueryResult(status=QueryStatus.COMPLETE, rows=rows)


@pytest.mark.asyncio
async def test_full_pipeline(cfg, fake_store, fake_sleep, field_row) -> None:
    marker = "createTreatment: Treatment created successfully for Jo** SM**"
    rows = [
        field_row("2025-12-30 10:00:05.000", marker),
        field_row("2025-12-30 10:00:00.000", marker),
        field_row("2025-12-29 09:00:00.000", marker),
        field_row("2025-12-29 09:30:00.000", "Error: NetworkError when attempting to fetch"),
        field_row("2025-12-28 09:30:00.000", "warn: slow response"),
        "garbage",
    ]
    store = fake_store([QueryResult(status=QueryStatus.RUNNING), _complete(rows)])

    result = await analyze(REQUEST, store=store, cfg=cfg, sleep=fake_sleep, today=TODAY, now=NOW)

    assert isinstance(result, AnalysisResult)
    assert len(result.records) == 5
    assert result.records[0].timestamp == datetime(2025, 12, 30, 10, 0, 5, tzinfo=UTC)
    assert result.event_count == 2
    assert [e.timestamp.day for e in result.events] == [30, 29]
    assert result.error_count == 1
    assert result.warning_count == 1
    assert {b.date: b.event_count for b in result.daily_stats}[TODAY] == 1
    assert sum(b.error_count for b in result.daily_stats) == 1
    assert result.diagnostics == ["row 5: unsupported record shape: str"]

    request = store.requests[0]
    assert request.start_time == 1766534400
    assert "[12]" in request.query_string

    d = result.to_dict(max_records=2)
    assert d["status"] == "ok"
    assert d["record_count"] == 5
    assert len(d["records"]) == 2
    assert d["insights"]["health"] == "critical"
    assert d["activity"]["unique_subjects"] == 1
    assert d["activity"]["locations"] == [
        {
            "location_id": "unknown",
            "event_count": 2,
            "type_counts": {"PANORAMIC": 2},
            "unique_subjects": 1,
            "last_activity": "2025-12-30T10:00:00.000Z",
            "status": "active",
        }
    ]


@pytest.mark.asyncio
async def test_empty_result_is_not_an_error(cfg, fake_store, fake_sleep) -> None:
    result = await analyze(
        REQUEST, store=fake_store([_complete([])]), cfg=cfg, sleep=fake_sleep, today=TODAY
    )

    assert isinstance(result, AnalysisResult)
    assert result.empty
    assert result.event_count == 0
    assert len(result.daily_stats) == 7
    assert all(b.event_count == 0 and b.error_count == 0 for b in result.daily_stats)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"subject_ids": []}, "subject_ids"),
        ({"version_tag": ""}, "version_tag"),
        ({"start_time": "whenever"}, "Invalid time value"),
        ({"end_time": "2025-12-01T00:00:00Z"}, "before"),
        ({"max_poll_attempts": 31}, "max_poll_attempts"),
    ],
)
async def test_validation_failures_never_reach_the_store(
    cfg, fake_store, fake_sleep, overrides, fragment
) -> None:
    store = fake_store([_complete([])])

    result = await analyze({**REQUEST, **overrides}, store=store, cfg=cfg, sleep=fake_sleep)

    assert isinstance(result, AnalysisFailure)
    assert result.category == "validation"
    assert fragment in result.message
    assert store.requests == []


@pytest.mark.asyncio
async def test_missing_field_is_a_validation_failure(cfg, fake_store, fake_sleep) -> None:
    request = {k: v for k, v in REQUEST.items() if k != "version_tag"}

    result = await analyze(request, store=fake_store([]), cfg=cfg, sleep=fake_sleep)

    assert isinstance(result, AnalysisFailure)
    assert result.to_dict()["category"] == "validation"


@pytest.mark.asyncio
async def test_store_failure_maps_to_failed(cfg, fake_store, fake_sleep) -> None:
    failed = QueryResult(status=QueryStatus.FAILED, diagnostic='{"status": "Failed"}')

    result = await analyze(REQUEST, store=fake_store([failed]), cfg=cfg, sleep=fake_sleep)

    assert isinstance(result, AnalysisFailure)
    assert result.category == "failed"
    assert result.to_dict()["diagnostic"] == '{"status": "Failed"}'


@pytest.mark.asyncio
async def test_poll_ceiling_maps_to_timeout(cfg, fake_store, fake_sleep) -> None:
    store = fake_store([QueryResult(status=QueryStatus.RUNNING)])

    result = await analyze(
        {**REQUEST, "max_poll_attempts": 3}, store=store, cfg=cfg, sleep=fake_sleep
    )

    assert isinstance(result, AnalysisFailure)
    assert result.category == "timeout"
    assert store.polls == 3


@pytest.mark.asyncio
async def test_store_transport_errors_map_to_failed(cfg, fake_store, fake_sleep) -> None:
    denied = fake_store([], start_error=PermissionError(13, "Permission denied"))
    unreachable = fake_store([], poll_error=OSError("network is unreachable"))

    submit_failure = await analyze(REQUEST, store=denied, cfg=cfg, sleep=fake_sleep)
    poll_failure = await analyze(REQUEST, store=unreachable, cfg=cfg, sleep=fake_sleep)

    assert isinstance(submit_failure, AnalysisFailure)
    assert submit_failure.to_dict()["status"] == "error"
    assert submit_failure.category == "failed"
    assert "Permission denied" in (submit_failure.diagnostic or "")
    assert isinstance(poll_failure, AnalysisFailure)
    assert poll_failure.category == "failed"
    assert poll_failure.diagnostic == "network is unreachable"
