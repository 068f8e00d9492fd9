"""Normalizer for column-oriented (field/value) result rows."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ..models import FieldRecord, LogRecord
from ..severity import DEFAULT_RULES, SeverityRules, classify
from .base import DEFAULT_MESSAGE, DEFAULT_STREAM
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FieldRecordNormalizer:
    """Match ``@``-prefixed field names (case-sensitive) to canonical attributes."""

    time_fields: Sequence[str] = ("@timestamp",)
    message_fields: Sequence[str] = ("@message",)
    stream_fields: Sequence[str] = ("@logStream",)
    rules: SeverityRules = DEFAULT_RULES

    def _first(self, record: FieldRecord, names: Sequence[str]) -> str | None:
        for name in names:
            value = record.get(name)
            if value:
                return value
        return None

    def normalize(self, raw: FieldRecord, *, now: datetime) -> LogRecord:
        ts_text = self._first(raw, self.time_fields)
        message = self._first(raw, self.message_fields)
        stream = self._first(raw, self.stream_fields)

        ts = parse_timestamp(ts_text) if ts_text is not None else None
        if ts is None or message is None:
            logger.warning(
                "Field record missing %s (fields=%s)",
                "timestamp" if ts is None else "message",
                [f.field for f in raw.fields],
            )

        message = message or DEFAULT_MESSAGE
        return LogRecord(
            timestamp=ts or now,
            message=message,
            stream=stream or DEFAULT_STREAM,
            severity=classify(message, self.rules),
        )
