from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_log_monitor.core.errors import QueryFailedError
from mcp_log_monitor.core.models import QueryStatus
from mcp_log_monitor.core.query import FileLogStore, QueryRequest, run_query


def _request(limit: int = 100) -> QueryRequest:
    return QueryRequest(
        log_group="g", start_time=1767052800, end_time=1767139200, query_string="q", limit=limit
    )


@pytest.mark.asyncio
async def test_completes_on_first_poll_and_truncates(
    tmp_path: Path, write_results, field_row, cfg, fake_sleep
) -> None:
    path = tmp_path / "results.json"
    write_results(path, [field_row("2025-12-30 08:00:00.000", f"m{i}") for i in range(5)])

    rows = await run_query(FileLogStore(path), _request(limit=3), cfg=cfg, sleep=fake_sleep)

    assert len(rows) == 3


@pytest.mark.asyncio
async def test_bare_list_and_failed_status(tmp_path: Path, write_results) -> None:
    bare = tmp_path / "bare.json"
    bare.write_text(json.dumps([{"message": "x"}]), encoding="utf-8")
    store = FileLogStore(bare)
    qid = await store.start_query(_request())
    assert (await store.get_query_results(qid)).rows == [{"message": "x"}]

    failed = tmp_path / "failed.json"
    write_results(failed, [], status="Failed")
    store = FileLogStore(failed)
    result = await store.get_query_results(await store.start_query(_request()))
    assert result.status is QueryStatus.FAILED
    assert result.diagnostic is not None


@pytest.mark.asyncio
async def test_missing_or_invalid_file(tmp_path: Path) -> None:
    with pytest.raises(QueryFailedError, match="not found"):
        await FileLogStore(tmp_path / "nope.json").start_query(_request())

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    store = FileLogStore(broken)
    with pytest.raises(QueryFailedError, match="not valid JSON"):
        await store.get_query_results(await store.start_query(_request()))
