"""Log store that serves a previously exported query result file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from ..errors import QueryFailedError
from ..models import QueryStatus
from .store import QueryRequest, QueryResult, parse_results_payload


@dataclass(slots=True)
class FileLogStore:
    """Read ``get-query-results`` JSON (or a bare list of rows) from disk.

    The query completes on the first poll; rows are truncated to the request
    limit. Useful for offline analysis of exported results.
    """

    path: Path
    encoding: str = "utf-8"
    _limits: dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.path = Path(self.path)

    async def start_query(self, request: QueryRequest) -> str:
        if not self.path.is_file():
            raise QueryFailedError(f"Result file not found: {self.path}")
        query_id = f"file-{len(self._limits) + 1}"
        self._limits[query_id] = request.limit
        return query_id

    async def get_query_results(self, query_id: str) -> QueryResult:
        if query_id not in self._limits:
            raise QueryFailedError(f"Unknown query id: {query_id}")

        async with aiofiles.open(self.path, encoding=self.encoding, errors="replace") as f:
            text = await f.read()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise QueryFailedError(
                f"Result file is not valid JSON: {self.path}", diagnostic=str(exc)
            ) from exc

        result = parse_results_payload(data)
        if result.status is not QueryStatus.COMPLETE:
            return result
        return QueryResult(
            status=result.status,
            rows=result.rows[: self._limits[query_id]],
            statistics=result.statistics,
        )

    async def stop_query(self, query_id: str) -> None:
        self._limits.pop(query_id, None)
