"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_monitor.core.activity import BUSINESS_END_HOUR, BUSINESS_START_HOUR, INACTIVITY_THRESHOLD
from mcp_log_monitor.core.analysis import AnalysisRequest
from mcp_log_monitor.core.config import resolve_monitor_config
from mcp_log_monitor.core.events import DEFAULT_EVENT_KIND, DEFAULT_MARKER
from mcp_log_monitor.core.insights import ERROR_CATEGORIES
from mcp_log_monitor.core.severity import DEFAULT_RULES
from mcp_log_monitor.tools.analysis import BASE_DIR_ENV, base_dir


def sample_results() -> dict[str, Any]:
    """Return a small get-query-results payload for demos and tests."""

    def row(ts: str, message: str, stream: str) -> list[dict[str, str]]:
        return [
            {"field": "@timestamp", "value": ts},
            {"field": "@message", "value": message},
            {"field": "@logStream", "value": stream},
        ]

    stream = "[2.4.1][12]/frontend"
    return {
        "status": "Complete",
        "results": [
            row(
                "2025-12-30 08:12:05.000",
                "Error: NetworkError connection timeout while saving",
                stream,
            ),
            row("2025-12-30 08:12:04.000", "warn: slow response from api 2300ms", stream),
            row(
                "2025-12-30 08:12:03.000",
                "createTreatment: Treatment created successfully for Jo** SM**",
                stream,
            ),
            row(
                "2025-12-30 08:12:01.000",
                "createTreatment: Treatment created successfully for Jo** SM**",
                stream,
            ),
            row("2025-12-30 08:11:58.000", "user opened patient list", stream),
        ],
        "statistics": {"recordsMatched": 5.0, "recordsScanned": 120.0, "bytesScanned": 4096.0},
    }


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-monitor/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://log-monitor/help\n"
            "- app://log-monitor/config\n"
            "- app://log-monitor/config/severity-keywords\n"
            "- app://log-monitor/config/error-categories\n"
            "- app://log-monitor/schemas/analysis-request\n"
            "- app://log-monitor/examples/sample-results\n"
            f"\nExported result files (source_file) are restricted to {BASE_DIR_ENV}.\n"
            f"Base directory: {base_dir()}\n"
        )

    @mcp.resource("app://log-monitor/config")
    def config_resource() -> dict[str, Any]:
        """Return the effective monitor configuration (env overrides applied)."""
        cfg = resolve_monitor_config()
        out = asdict(cfg)
        out["event_marker"] = DEFAULT_MARKER
        out["event_kind"] = DEFAULT_EVENT_KIND
        out["base_dir"] = str(base_dir())
        out["inactivity_hours"] = INACTIVITY_THRESHOLD.total_seconds() / 3600
        out["business_hours_utc"] = f"Mon-Fri {BUSINESS_START_HOUR:02d}:00-{BUSINESS_END_HOUR:02d}:00"
        return out

    @mcp.resource("app://log-monitor/config/severity-keywords")
    def severity_keywords() -> dict[str, list[str]]:
        """Return the keywords that classify messages as error or warning."""
        return {
            "error": list(DEFAULT_RULES.error_keywords),
            "warning": list(DEFAULT_RULES.warning_keywords),
        }

    @mcp.resource("app://log-monitor/config/error-categories")
    def error_categories() -> dict[str, str]:
        """Return the named error categories and their patterns."""
        return {name: pattern.pattern for name, pattern in ERROR_CATEGORIES.items()}

    @mcp.resource("app://log-monitor/schemas/analysis-request")
    def analysis_request_schema() -> dict[str, Any]:
        """Return the JSON schema for analysis requests."""
        return AnalysisRequest.model_json_schema()

    @mcp.resource("app://log-monitor/examples/sample-results")
    def sample_results_resource() -> dict[str, Any]:
        """Return a sample exported query result."""
        return sample_results()
