"""Submit-and-poll driver for asynchronous log store queries.

``QuerySession`` is the state machine (running -> complete|failed|timed_out|
cancelled); ``run_query`` drives it on a fixed interval. The sleep function is
injectable so tests can poll without real delays.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from ..config import MonitorConfig, resolve_monitor_config
from ..errors import LogMonitorError, QueryCancelledError, QueryFailedError, QueryTimeoutError
from ..models import QueryStatus, SessionStatus
from .store import LogStore, QueryRequest, QueryResult

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass(slots=True)
class QuerySession:
    """One submitted query. Owned by the caller that submitted it."""

    store: LogStore
    query_id: str
    max_attempts: int
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    status: SessionStatus = SessionStatus.RUNNING
    attempts: int = 0
    rows: list[Any] = field(default_factory=list)
    diagnostic: str | None = None

    @classmethod
    async def submit(
        cls,
        store: LogStore,
        request: QueryRequest,
        *,
        max_attempts: int,
    ) -> QuerySession:
        """Start the query once. A submit failure is fatal (never retried)."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        try:
            query_id = await store.start_query(request)
        except LogMonitorError:
            raise
        except Exception as exc:
            raise QueryFailedError(
                f"Could not submit query: {exc}", diagnostic=str(exc)
            ) from exc
        if not query_id:
            raise QueryFailedError("Log store did not return a query id")
        return cls(store=store, query_id=query_id, max_attempts=max_attempts)

    def apply(self, result: QueryResult) -> SessionStatus:
        """Apply one status response. Terminal sessions ignore further input."""
        if self.status.is_terminal:
            return self.status

        self.attempts += 1
        if result.status is QueryStatus.COMPLETE:
            self.status = SessionStatus.COMPLETE
            self.rows = list(result.rows)
        elif result.status in (QueryStatus.FAILED, QueryStatus.TIMEOUT):
            self.status = SessionStatus.FAILED
            self.diagnostic = result.diagnostic
        elif result.status is QueryStatus.CANCELLED:
            self.status = SessionStatus.CANCELLED
            self.diagnostic = result.diagnostic
        elif self.attempts >= self.max_attempts:
            self.status = SessionStatus.TIMED_OUT
        return self.status

    async def poll(self) -> SessionStatus:
        """Fetch the current store status and advance the state machine."""
        if self.status.is_terminal:
            return self.status
        try:
            result = await self.store.get_query_results(self.query_id)
        except LogMonitorError:
            self.status = SessionStatus.FAILED
            raise
        except Exception as exc:
            self.status = SessionStatus.FAILED
            self.diagnostic = str(exc)
            raise QueryFailedError(
                f"Could not fetch results for query {self.query_id}: {exc}",
                diagnostic=self.diagnostic,
            ) from exc
        status = self.apply(result)
        logger.debug(
            "Polled query %s (attempt %s/%s): store=%s session=%s",
            self.query_id,
            self.attempts,
            self.max_attempts,
            result.status.value,
            status.value,
        )
        return status

    def cancel(self) -> None:
        if not self.status.is_terminal:
            self.status = SessionStatus.CANCELLED


async def _stop_quietly(session: QuerySession) -> None:
    try:
        await session.store.stop_query(session.query_id)
    except Exception as exc:
        logger.warning("Could not stop query %s: %s", session.query_id, exc)


async def run_query(
    store: LogStore,
    request: QueryRequest,
    *,
    cfg: MonitorConfig | None = None,
    max_attempts: int | None = None,
    poll_interval: float | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> list[Any]:
    """Submit ``request`` and poll until the store reports a terminal status.

    Returns the raw result rows. Raises QueryFailedError, QueryTimeoutError or
    QueryCancelledError. If the awaiting task is cancelled the query is stopped
    and ``asyncio.CancelledError`` propagates; no partial rows are returned.
    """
    cfg = resolve_monitor_config(cfg)
    attempts = max_attempts if max_attempts is not None else cfg.max_poll_attempts
    interval = poll_interval if poll_interval is not None else cfg.poll_interval

    session = await QuerySession.submit(store, request, max_attempts=attempts)
    logger.info(
        "Started query %s on %s (%s..%s, limit=%s)",
        session.query_id,
        request.log_group,
        request.start_time,
        request.end_time,
        request.limit,
    )

    try:
        while True:
            await sleep(interval)
            status = await session.poll()

            if status is SessionStatus.COMPLETE:
                logger.info(
                    "Query %s complete after %s polls: %s rows",
                    session.query_id,
                    session.attempts,
                    len(session.rows),
                )
                return session.rows
            if status is SessionStatus.FAILED:
                raise QueryFailedError(
                    f"Query {session.query_id} failed", diagnostic=session.diagnostic
                )
            if status is SessionStatus.CANCELLED:
                raise QueryCancelledError(f"Query {session.query_id} was cancelled by the store")
            if status is SessionStatus.TIMED_OUT:
                raise QueryTimeoutError(
                    f"Query {session.query_id} timed out after {session.attempts} attempts",
                    attempts=session.attempts,
                )
    except asyncio.CancelledError:
        session.cancel()
        logger.info("Query %s abandoned by caller; stopping it", session.query_id)
        await _stop_quietly(session)
        raise
