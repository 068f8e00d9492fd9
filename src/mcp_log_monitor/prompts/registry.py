"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_list(values: Sequence[str | int] | str) -> str:
    """Return values as a JSON array literal for prompt display."""
    if isinstance(values, str):
        items = [s.strip() for s in values.split(",") if s.strip()]
    else:
        items = [str(s).strip() for s in values if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def _call_block(
    *,
    start_time: str,
    end_time: str,
    subject_ids: Sequence[str | int] | str,
    version_tag: str,
    source_file: str | None,
) -> str:
    lines = [
        f"- start_time: {start_time}",
        f"- end_time: {end_time}",
        f"- subject_ids: {_format_list(subject_ids)}",
        f"- version_tag: {version_tag}",
    ]
    if source_file:
        lines.append(f"- source_file: {source_file}")
    return "\n".join(lines)


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def investigate_subject_activity(
        start_time: str,
        end_time: str,
        subject_ids: Sequence[str | int] | str,
        version_tag: str,
        source_file: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt that reviews business events and daily activity."""
        call_block = _call_block(
            start_time=start_time,
            end_time=end_time,
            subject_ids=subject_ids,
            version_tag=version_tag,
            source_file=source_file,
        )
        return [
            {
                "role": "system",
                "content": (
                    "You are an operations analyst reviewing application activity. "
                    "Report only what the tool output shows. Subjects are redacted; "
                    "never try to reconstruct them."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Review subject activity using analyze_logs. Follow this workflow:\n"
                    "- Call analyze_logs once with the parameters below.\n"
                    "- If status is \"error\", report the category and message and stop.\n"
                    "- If empty is true, say that no records matched and suggest widening "
                    "the time range or checking the version tag.\n"
                    "- event_count is already deduplicated; do not recount events.\n\n"
                    "Call analyze_logs with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Activity overview (event_count, busiest day from daily_stats)\n"
                    "2) Daily table (date, events, errors)\n"
                    "3) Notable gaps or spikes (1-3 bullets; say 'None' if flat)\n"
                ),
            },
        ]

    @mcp.prompt()
    def summarize_errors(
        start_time: str,
        end_time: str,
        subject_ids: Sequence[str | int] | str,
        version_tag: str,
        error_category: str | None = None,
        source_file: str | None = None,
    ) -> list[dict[str, Any]]:
        """Build a prompt for error triage over a query window."""
        call_block = _call_block(
            start_time=start_time,
            end_time=end_time,
            subject_ids=subject_ids,
            version_tag=version_tag,
            source_file=source_file,
        )
        call_block += '\n- severities: ["error"]\n- drop_duplicates: true'
        if error_category:
            call_block += f"\n- error_category: {error_category}"
        return [
            {
                "role": "system",
                "content": (
                    "You are a senior incident triage assistant for frontend and backend services. "
                    "Provide concise, evidence-based summaries from log data. "
                    "Do not invent details; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Triage errors using search_logs. Follow this workflow:\n"
                    "- Call search_logs with the parameters below.\n"
                    "- Severities must be a list of strings, e.g., [\"error\", \"warning\"].\n"
                    "- If no records are returned, state that clearly.\n"
                    "- Quote messages exactly as returned; do not fabricate lines.\n\n"
                    "Call search_logs with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) What happened (1-3 bullets)\n"
                    "2) Evidence (2-5 quoted records with timestamp and stream)\n"
                    "3) Suspected root cause (1-2 sentences; say 'Unknown' if unclear)\n"
                    "4) Next actions (2-4 bullets)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Error categories available for error_category:",
                    },
                    {"type": "resource", "uri": "app://log-monitor/config/error-categories"},
                ],
            },
        ]
