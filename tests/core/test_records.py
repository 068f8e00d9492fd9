from __future__ import annotations

from datetime import UTC, datetime

import pytest

from mcp_log_monitor.core.errors import MalformedRecordError
from mcp_log_monitor.core.models import FieldRecord, FlatRecord, RawField, Severity
from mcp_log_monitor.core.records import (
    DEFAULT_MESSAGE,
    DEFAULT_STREAM,
    coerce_raw,
    normalize,
    normalize_batch,
    normalize_batch_parallel,
    parse_timestamp,
)

NOW = datetime(2025, 12, 30, 12, 0, 0, tzinfo=UTC)


def test_field_record_maps_sentinel_fields(field_row) -> None:
    raw = coerce_raw(field_row("2025-12-30 08:12:04.000", "Error: upstream timeout"))

    rec = normalize(raw, now=NOW)

    assert rec.timestamp == datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)
    assert rec.message == "Error: upstream timeout"
    assert rec.stream == "2.4.1/site-12/frontend"
    assert rec.severity is Severity.ERROR


def test_field_names_are_case_sensitive() -> None:
    raw = FieldRecord(
        fields=(
            RawField(field="@Timestamp", value="2025-12-30 08:00:00.000"),
            RawField(field="@message", value="hello"),
        )
    )

    rec = normalize(raw, now=NOW)

    assert rec.timestamp == NOW
    assert rec.message == "hello"
    assert rec.stream == DEFAULT_STREAM


def test_missing_message_gets_placeholder_and_info() -> None:
    raw = FieldRecord(fields=(RawField(field="@timestamp", value="2025-12-30 08:00:00.000"),))

    rec = normalize(raw, now=NOW)

    assert rec.message == DEFAULT_MESSAGE
    assert rec.severity is Severity.INFO


def test_flat_record_copies_attributes() -> None:
    raw = FlatRecord(
        attributes={"timestamp": 1767082324000, "message": "warn: slow page", "logStream": "s1"}
    )

    rec = normalize(raw, now=NOW)

    assert rec.timestamp == datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)
    assert rec.stream == "s1"
    assert rec.severity is Severity.WARNING


def test_flat_record_with_unparseable_timestamp_uses_now() -> None:
    rec = normalize(FlatRecord(attributes={"timestamp": "yesterday", "message": "x"}), now=NOW)

    assert rec.timestamp == NOW


def test_coerce_raw_rejects_unknown_shapes() -> None:
    with pytest.raises(MalformedRecordError):
        coerce_raw("plain text line")
    with pytest.raises(MalformedRecordError):
        coerce_raw([{"name": "@message", "value": "x"}])


def test_normalize_batch_skips_malformed_rows_in_order(field_row) -> None:
    rows = [
        field_row("2025-12-30 08:00:01.000", "first"),
        42,
        {"timestamp": "2025-12-30T08:00:03Z", "message": "third"},
    ]

    batch = normalize_batch(rows, now=NOW)

    assert [r.message for r in batch.records] == ["first", "third"]
    assert batch.skipped == 1
    assert batch.diagnostics[0].startswith("row 1:")


@pytest.mark.asyncio
async def test_parallel_batch_matches_serial(field_row) -> None:
    rows: list[object] = []
    for i in range(1200):
        rows.append(field_row(f"2025-12-30 08:{i // 60 % 60:02d}:{i % 60:02d}.000", f"msg {i}"))
        if i % 400 == 0:
            rows.append(None)

    serial = normalize_batch(rows, now=NOW)
    parallel = await normalize_batch_parallel(rows, now=NOW, max_workers=4)

    assert parallel.records == serial.records
    assert parallel.diagnostics == serial.diagnostics
    assert parallel.skipped == 3


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1767082324, datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)),
        (1767082324000, datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)),
        ("1767082324000", datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)),
        ("2025-12-30 08:12:04.000", datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)),
        ("2025-12-30T09:12:04+01:00", datetime(2025, 12, 30, 8, 12, 4, tzinfo=UTC)),
        ("not a date", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_timestamp(value: object, expected: datetime | None) -> None:
    assert parse_timestamp(value) == expected
