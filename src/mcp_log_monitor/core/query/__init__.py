"""Log store queries: request building, stores and the polling driver."""

from __future__ import annotations

from .builder import (
    build_query_request,
    build_query_string,
    resolve_limit,
    sanitize_subject_ids,
    sanitize_version_tag,
    to_epoch_seconds,
)
from .cloudwatch import CloudWatchStore
from .file_store import FileLogStore
from .poller import QuerySession, run_query
from .store import LogStore, QueryRequest, QueryResult, parse_results_payload

__all__ = [
    "CloudWatchStore",
    "FileLogStore",
    "LogStore",
    "QueryRequest",
    "QueryResult",
    "QuerySession",
    "build_query_request",
    "build_query_string",
    "parse_results_payload",
    "resolve_limit",
    "run_query",
    "sanitize_subject_ids",
    "sanitize_version_tag",
    "to_epoch_seconds",
]
