"""Record shapes and normalization.

Turns raw log store rows (field/value arrays or flat objects) into canonical records.
"""

from __future__ import annotations

from .base import DEFAULT_MESSAGE, DEFAULT_STREAM, NormalizedBatch, RecordNormalizer, coerce_raw
from .fields import FieldRecordNormalizer
from .flat import FlatRecordNormalizer
from .normalizer import normalize, normalize_batch, normalize_batch_parallel
from .timestamps import canonicalize_timestamp_text, epoch_to_seconds, parse_timestamp

__all__ = [
    "DEFAULT_MESSAGE",
    "DEFAULT_STREAM",
    "FieldRecordNormalizer",
    "FlatRecordNormalizer",
    "NormalizedBatch",
    "RecordNormalizer",
    "canonicalize_timestamp_text",
    "coerce_raw",
    "epoch_to_seconds",
    "normalize",
    "normalize_batch",
    "normalize_batch_parallel",
    "parse_timestamp",
]
