from __future__ import annotations

from pathlib import Path

import pytest

from mcp_log_monitor.core.query import CloudWatchStore, FileLogStore
from mcp_log_monitor.resources.registry import sample_results
from mcp_log_monitor.tools.analysis import (
    analyze_logs_impl,
    build_store,
    safe_resolve,
    search_logs_impl,
)

SOURCE = {
    "start_time": 1767052800,
    "end_time": 1767139200,
    "subject_ids": ["12"],
    "version_tag": "2.4.1",
}


@pytest.fixture
def results_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_results) -> str:
    monkeypatch.setenv("LOG_MONITOR_BASE_DIR", str(tmp_path))
    write_results(tmp_path / "results.json", sample_results()["results"])
    return "results.json"


@pytest.mark.asyncio
async def test_analyze_logs_from_exported_file(results_file: str, cfg) -> None:
    out = await analyze_logs_impl(**SOURCE, source_file=results_file, cfg=cfg)

    assert out["status"] == "ok"
    assert out["empty"] is False
    assert out["record_count"] == 5
    assert out["event_count"] == 1
    assert out["error_count"] == 1
    assert out["warning_count"] == 1
    assert out["records"][0]["timestamp"] == "2025-12-30T08:12:05.000Z"
    assert out["events"][0]["subject_key"] == "Jo** SM**"
    assert out["insights"]["health"] == "critical"
    assert out["activity"]["unique_subjects"] == 1
    assert out["activity"]["locations"][0]["location_id"] == "12"
    assert out["activity"]["locations"][0]["event_count"] == 1
    assert out["activity"]["locations"][0]["last_activity"] == "2025-12-30T08:12:01.000Z"


@pytest.mark.asyncio
async def test_analyze_logs_limits_returned_records(results_file: str, cfg) -> None:
    out = await analyze_logs_impl(**SOURCE, source_file=results_file, limit_results=2, cfg=cfg)

    assert out["record_count"] == 5
    assert len(out["records"]) == 2


@pytest.mark.asyncio
async def test_analyze_logs_returns_validation_error_dict(results_file: str, cfg) -> None:
    out = await analyze_logs_impl(**{**SOURCE, "subject_ids": ["abc"]}, source_file=results_file, cfg=cfg)

    assert out["status"] == "error"
    assert out["category"] == "validation"


@pytest.mark.asyncio
async def test_analyze_logs_missing_file_is_failed(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cfg) -> None:
    monkeypatch.setenv("LOG_MONITOR_BASE_DIR", str(tmp_path))

    out = await analyze_logs_impl(**SOURCE, source_file="missing.json", cfg=cfg)

    assert out == {"status": "error", "category": "failed", "message": out["message"]}
    assert "not found" in out["message"]


@pytest.mark.asyncio
async def test_search_logs_filters_records(results_file: str, cfg) -> None:
    out = await search_logs_impl(
        **SOURCE,
        source_file=results_file,
        severities=["ERROR", "warning"],
        search="network",
        cfg=cfg,
    )

    assert out["status"] == "ok"
    assert out["total"] == 5
    assert out["count"] == 1
    assert out["streams"] == ["[2.4.1][12]/frontend"]
    assert "NetworkError" in out["records"][0]["message"]


@pytest.mark.asyncio
async def test_search_logs_window_and_duplicates(results_file: str, cfg) -> None:
    out = await search_logs_impl(
        **SOURCE,
        source_file=results_file,
        since="2025-12-30T08:12:00Z",
        until="2025-12-30T08:12:04Z",
        drop_duplicates=True,
        cfg=cfg,
    )

    assert out["count"] == 1
    assert out["records"][0]["message"].startswith("createTreatment")


@pytest.mark.asyncio
async def test_search_logs_rejects_bad_arguments(results_file: str, cfg) -> None:
    with pytest.raises(ValueError, match="Unknown severity"):
        await search_logs_impl(**SOURCE, source_file=results_file, severities=["fatal"], cfg=cfg)
    with pytest.raises(ValueError, match="Unknown error category"):
        await search_logs_impl(**SOURCE, source_file=results_file, error_category="Cosmic", cfg=cfg)
    with pytest.raises(ValueError, match="limit_results"):
        await search_logs_impl(**SOURCE, source_file=results_file, limit_results=0, cfg=cfg)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("selector", "expected"),
    [
        ({"week": "2026-W01"}, 5),
        ({"week": "2025-W52"}, 0),
        ({"month": "2025-12"}, 5),
        ({"month": "2026-01"}, 0),
        ({"days": 1}, 0),
    ],
)
async def test_search_logs_week_month_and_days(results_file: str, cfg, selector, expected) -> None:
    out = await search_logs_impl(**SOURCE, source_file=results_file, **selector, cfg=cfg)

    assert out["status"] == "ok"
    assert out["total"] == 5
    assert out["count"] == expected


@pytest.mark.asyncio
async def test_search_logs_exact_message(results_file: str, cfg) -> None:
    marker = "createTreatment: Treatment created successfully for Jo** SM**"

    out = await search_logs_impl(**SOURCE, source_file=results_file, exact_message=marker, cfg=cfg)
    partial = await search_logs_impl(
        **SOURCE, source_file=results_file, exact_message="createTreatment", cfg=cfg
    )

    assert out["count"] == 2
    assert {r["message"] for r in out["records"]} == {marker}
    assert partial["count"] == 0


@pytest.mark.asyncio
async def test_poll_ceiling_is_a_request_parameter(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, write_results, cfg
) -> None:
    monkeypatch.setenv("LOG_MONITOR_BASE_DIR", str(tmp_path))
    write_results(tmp_path / "running.json", [], status="Running")

    too_high = await analyze_logs_impl(**SOURCE, source_file="running.json", max_poll_attempts=31, cfg=cfg)
    timed_out = await analyze_logs_impl(**SOURCE, source_file="running.json", max_poll_attempts=2, cfg=cfg)
    searched = await search_logs_impl(**SOURCE, source_file="running.json", max_poll_attempts=1, cfg=cfg)

    assert too_high["category"] == "validation"
    assert "max_poll_attempts" in too_high["message"]
    assert timed_out["category"] == "timeout"
    assert "after 2 attempts" in timed_out["message"]
    assert searched["category"] == "timeout"


def test_source_file_must_stay_under_base_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, cfg) -> None:
    monkeypatch.setenv("LOG_MONITOR_BASE_DIR", str(tmp_path))

    with pytest.raises(ValueError, match="escapes"):
        safe_resolve("../outside.json")
    assert isinstance(build_store("results.json", cfg), FileLogStore)
    assert isinstance(build_store(None, cfg), CloudWatchStore)
