"""Normalizer interfaces and raw-shape coercion."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from ..errors import MalformedRecordError
from ..models import FieldRecord, FlatRecord, LogRecord, RawField, RawRecord

DEFAULT_STREAM = "unknown"
DEFAULT_MESSAGE = "No content available"


class RecordNormalizer(Protocol):
    """Normalizer interface: one raw shape in, one canonical record out."""

    def normalize(self, raw: Any, *, now: datetime) -> LogRecord:
        """Build a canonical record. Must not raise."""
        ...


@dataclass(frozen=True, slots=True)
class NormalizedBatch:
    """Records in input order plus diagnostics for rows that were skipped."""

    records: list[LogRecord]
    diagnostics: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return len(self.diagnostics)


def coerce_raw(obj: object) -> RawRecord:
    """Resolve a decoded result row into the raw-record union.

    A list of ``{"field": ..., "value": ...}`` mappings becomes a FieldRecord,
    any other mapping becomes a FlatRecord.
    """
    if isinstance(obj, (FieldRecord, FlatRecord)):
        return obj

    if isinstance(obj, Mapping):
        return FlatRecord(attributes=dict(obj))

    if isinstance(obj, (list, tuple)):
        pairs: list[RawField] = []
        for item in obj:
            if not isinstance(item, Mapping) or "field" not in item:
                raise MalformedRecordError(
                    f"field row contains a non field/value item: {type(item).__name__}"
                )
            value = item.get("value")
            pairs.append(RawField(field=str(item["field"]), value="" if value is None else str(value)))
        return FieldRecord(fields=tuple(pairs))

    raise MalformedRecordError(f"unsupported record shape: {type(obj).__name__}")
