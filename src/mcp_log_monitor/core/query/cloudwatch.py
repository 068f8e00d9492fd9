"""CloudWatch Logs Insights store backed by boto3."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..config import MonitorConfig
from ..errors import QueryFailedError
from .store import QueryRequest, QueryResult, parse_results_payload

logger = logging.getLogger(__name__)

_DIAGNOSTIC_MAX_CHARS = 2000


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code") or "ClientError")
    return type(exc).__name__


@dataclass(slots=True)
class CloudWatchStore:
    """Call ``StartQuery`` / ``GetQueryResults`` / ``StopQuery`` on a logs client.

    Credentials are whatever the named profile resolves to; this class never
    handles them directly. The boto3 client is blocking, so every call runs in
    the default executor.
    """

    region: str = "eu-west-3"
    profile: str | None = "prod"
    client: Any = field(default=None, repr=False)

    @classmethod
    def from_config(cls, cfg: MonitorConfig) -> CloudWatchStore:
        return cls(region=cfg.aws_region, profile=cfg.aws_profile or None)

    def _logs_client(self) -> Any:
        if self.client is None:
            session = boto3.Session(profile_name=self.profile, region_name=self.region)
            self.client = session.client("logs")
        return self.client

    async def _call(self, operation: str, **params: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            client = self._logs_client()
            return await loop.run_in_executor(None, partial(getattr(client, operation), **params))
        except (ClientError, BotoCoreError) as exc:
            raise QueryFailedError(
                f"CloudWatch {operation} failed ({_error_code(exc)})",
                diagnostic=str(exc)[:_DIAGNOSTIC_MAX_CHARS],
            ) from exc

    async def start_query(self, request: QueryRequest) -> str:
        data = await self._call(
            "start_query",
            logGroupName=request.log_group,
            startTime=request.start_time,
            endTime=request.end_time,
            queryString=request.query_string,
            limit=request.limit,
        )
        query_id = data.get("queryId") if isinstance(data, dict) else None
        if not query_id:
            raise QueryFailedError(
                "Failed to get query id from CloudWatch",
                diagnostic=json.dumps(data, default=str)[:_DIAGNOSTIC_MAX_CHARS],
            )
        return str(query_id)

    async def get_query_results(self, query_id: str) -> QueryResult:
        data = await self._call("get_query_results", queryId=query_id)
        return parse_results_payload(data)

    async def stop_query(self, query_id: str) -> None:
        await self._call("stop_query", queryId=query_id)
        logger.info("Stopped query %s", query_id)
