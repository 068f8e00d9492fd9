"""Normalizer for rows that already arrive as flat objects."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from ..models import FlatRecord, LogRecord
from ..severity import DEFAULT_RULES, SeverityRules, classify
from .base import DEFAULT_MESSAGE, DEFAULT_STREAM
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FlatRecordNormalizer:
    """Copy named attributes directly, applying the same defaults as field rows."""

    time_keys: Sequence[str] = ("timestamp", "@timestamp", "time")
    message_keys: Sequence[str] = ("message", "@message", "msg")
    stream_keys: Sequence[str] = ("logStream", "@logStream", "stream")
    rules: SeverityRules = DEFAULT_RULES

    def normalize(self, raw: FlatRecord, *, now: datetime) -> LogRecord:
        attrs = raw.attributes

        ts = None
        ts_found = False
        for key in self.time_keys:
            if key in attrs and attrs[key] not in (None, ""):
                ts_found = True
                ts = parse_timestamp(attrs[key])
                if ts is not None:
                    break

        message = None
        for key in self.message_keys:
            val = attrs.get(key)
            if val is not None and str(val) != "":
                message = str(val)
                break

        stream = None
        for key in self.stream_keys:
            val = attrs.get(key)
            if val:
                stream = str(val)
                break

        if ts is None or message is None:
            logger.warning(
                "Flat record missing %s (keys=%s, timestamp_present=%s)",
                "timestamp" if ts is None else "message",
                sorted(str(k) for k in attrs),
                ts_found,
            )

        message = message or DEFAULT_MESSAGE
        return LogRecord(
            timestamp=ts or now,
            message=message,
            stream=stream or DEFAULT_STREAM,
            severity=classify(message, self.rules),
        )
