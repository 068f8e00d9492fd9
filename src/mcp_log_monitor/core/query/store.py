"""Log store interface and shared result types."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..errors import QueryFailedError
from ..models import QueryStatus


@dataclass(frozen=True, slots=True)
class QueryRequest:
    """A fully built store query (epoch seconds, sanitized expression)."""

    log_group: str
    start_time: int
    end_time: int
    query_string: str
    limit: int


@dataclass(frozen=True, slots=True)
class QueryResult:
    """One status/result response for a submitted query."""

    status: QueryStatus
    rows: list[Any] = field(default_factory=list)
    diagnostic: str | None = None
    statistics: dict[str, Any] = field(default_factory=dict)


class LogStore(Protocol):
    """External log store: submit a query, fetch its status/results, stop it."""

    async def start_query(self, request: QueryRequest) -> str:
        """Submit a query and return its id."""
        ...

    async def get_query_results(self, query_id: str) -> QueryResult:
        """Return the current status (and rows once complete)."""
        ...

    async def stop_query(self, query_id: str) -> None:
        """Ask the store to stop a running query."""
        ...


def parse_results_payload(data: object) -> QueryResult:
    """Parse a ``get-query-results`` style payload.

    Accepts ``{"status": ..., "results": [...]}`` or a bare list of rows (which
    is treated as a completed result).
    """
    if isinstance(data, list):
        return QueryResult(status=QueryStatus.COMPLETE, rows=list(data))

    if not isinstance(data, Mapping):
        raise QueryFailedError(
            "Unexpected query result payload",
            diagnostic=f"payload type: {type(data).__name__}",
        )

    status = QueryStatus.parse(data.get("status", QueryStatus.COMPLETE.value))
    rows = data.get("results") or []
    if not isinstance(rows, list):
        raise QueryFailedError("Query results must be a list", diagnostic=str(rows)[:500])

    diagnostic = None
    if status in (QueryStatus.FAILED, QueryStatus.CANCELLED, QueryStatus.TIMEOUT):
        diagnostic = json.dumps(data, default=str)

    statistics = data.get("statistics")
    return QueryResult(
        status=status,
        rows=rows,
        diagnostic=diagnostic,
        statistics=dict(statistics) if isinstance(statistics, Mapping) else {},
    )
