"""Batch normalization of raw result rows into canonical records.

The raw shape is resolved once here; nothing downstream inspects it again.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from functools import partial

from ..errors import MalformedRecordError
from ..models import FieldRecord, LogRecord, RawRecord
from .base import NormalizedBatch, coerce_raw
from .fields import FieldRecordNormalizer
from .flat import FlatRecordNormalizer

logger = logging.getLogger(__name__)

MAX_WORKERS_ENV = "LOG_MONITOR_MAX_WORKERS"
MIN_PARALLEL_CHUNK = 256

_FIELD_NORMALIZER = FieldRecordNormalizer()
_FLAT_NORMALIZER = FlatRecordNormalizer()


def normalize(raw: RawRecord, *, now: datetime | None = None) -> LogRecord:
    """Normalize one raw record. Never raises for FieldRecord/FlatRecord input."""
    now = now or datetime.now(UTC)
    if isinstance(raw, FieldRecord):
        return _FIELD_NORMALIZER.normalize(raw, now=now)
    return _FLAT_NORMALIZER.normalize(raw, now=now)


def normalize_batch(
    rows: Sequence[object],
    *,
    now: datetime | None = None,
    start_index: int = 0,
) -> NormalizedBatch:
    """Normalize decoded rows in order, skipping (and reporting) malformed ones."""
    now = now or datetime.now(UTC)
    records: list[LogRecord] = []
    diagnostics: list[str] = []

    for offset, row in enumerate(rows):
        try:
            raw = coerce_raw(row)
        except MalformedRecordError as exc:
            index = start_index + offset
            logger.warning("Skipping malformed record at index %s: %s", index, exc)
            diagnostics.append(f"row {index}: {exc}")
            continue
        records.append(normalize(raw, now=now))

    return NormalizedBatch(records=records, diagnostics=diagnostics)


def resolve_max_workers(max_workers: int | None) -> int:
    if max_workers is not None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        return max_workers

    env = os.getenv(MAX_WORKERS_ENV)
    if env:
        try:
            value = int(env)
        except ValueError as exc:
            raise ValueError(f"{MAX_WORKERS_ENV} must be an integer") from exc
        if value < 1:
            raise ValueError(f"{MAX_WORKERS_ENV} must be >= 1")
        return value

    cpu_count = os.cpu_count() or 1
    return min(32, cpu_count)


async def normalize_batch_parallel(
    rows: Sequence[object],
    *,
    now: datetime | None = None,
    max_workers: int | None = None,
) -> NormalizedBatch:
    """Normalize a large batch in contiguous chunks on a thread pool.

    Chunks are reassembled in input order, so the result is identical to
    ``normalize_batch`` on the same rows.
    """
    now = now or datetime.now(UTC)
    workers = resolve_max_workers(max_workers)
    if workers == 1 or len(rows) < MIN_PARALLEL_CHUNK * 2:
        return normalize_batch(rows, now=now)

    chunk_size = max(MIN_PARALLEL_CHUNK, -(-len(rows) // workers))
    starts = range(0, len(rows), chunk_size)

    loop = asyncio.get_running_loop()
    executor = ThreadPoolExecutor(max_workers=workers)
    try:
        parts = await asyncio.gather(
            *(
                loop.run_in_executor(
                    executor,
                    partial(
                        normalize_batch,
                        rows[start : start + chunk_size],
                        now=now,
                        start_index=start,
                    ),
                )
                for start in starts
            )
        )
    finally:
        executor.shutdown(wait=True)

    records: list[LogRecord] = []
    diagnostics: list[str] = []
    for part in parts:
        records.extend(part.records)
        diagnostics.extend(part.diagnostics)
    return NormalizedBatch(records=records, diagnostics=diagnostics)
