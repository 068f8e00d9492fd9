"""Error taxonomy for the query and analysis pipeline."""

from __future__ import annotations


class LogMonitorError(Exception):
    """Base class; ``category`` is what callers switch on."""

    category = "error"


class RequestValidationError(LogMonitorError):
    """Missing or malformed request input. Raised before any external call."""

    category = "validation"


class QueryFailedError(LogMonitorError):
    """The log store reported that the query (or its submission) failed."""

    category = "failed"

    def __init__(self, message: str, *, diagnostic: str | None = None) -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class QueryTimeoutError(LogMonitorError):
    """Polling ceiling exceeded before the store reported completion."""

    category = "timeout"

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class QueryCancelledError(LogMonitorError):
    """The query was cancelled before it completed."""

    category = "cancelled"


class MalformedRecordError(LogMonitorError):
    """A raw row matched no known record shape."""

    category = "malformed"
