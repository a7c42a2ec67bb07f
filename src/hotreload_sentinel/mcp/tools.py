"""MCP tool catalog and handler result type."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

_NO_ARGS: dict[str, Any] = {"type": "object", "properties": {}, "additionalProperties": False}


class ToolName(str, Enum):
    """Every tool the server exposes."""

    WATCH_START = "hr_watch_start"
    WATCH_STOP = "hr_watch_stop"
    STATUS = "hr_status"
    DIAGNOSE = "hr_diagnose"
    REPORT = "hr_report"
    WATCH_FOLLOW = "hr_watch_follow"
    PENDING_ATOMS = "hr_pending_atoms"
    RECORD_VERDICT = "hr_record_verdict"
    DRAFT_ISSUE = "hr_draft_issue"


@dataclass
class ToolResult:
    """Either a text payload or an error message."""

    text: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, text: str) -> "ToolResult":
        return cls(text=text)

    @classmethod
    def failure(cls, error: str) -> "ToolResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_content(self) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": self.text or ""}]}


TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": ToolName.WATCH_START.value,
        "description": "Start hotreload sentinel background watcher.",
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.STATUS.value,
        "description": "Get current hotreload sentinel status.",
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.DIAGNOSE.value,
        "description": "Run hotreload sentinel diagnose summary.",
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.WATCH_STOP.value,
        "description": "Stop hotreload sentinel background watcher.",
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.REPORT.value,
        "description": "Summarize sentinel state file with key hints.",
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.WATCH_FOLLOW.value,
        "description": (
            "Foreground follow stream for status and alerts. When output contains "
            "'follow_pending_confirmation=true', call hr_pending_atoms to get atoms, confirm "
            "each atom with the developer, then call hr_record_verdict with the results."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {"seconds": {"type": "integer", "minimum": 1, "default": 60}},
            "additionalProperties": False,
        },
    },
    {
        "name": ToolName.DRAFT_ISSUE.value,
        "description": (
            "Generate a GitHub issue draft from hot reload verdicts collected during this "
            "session. Returns the draft file path."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "include_successful": {
                    "type": "boolean",
                    "description": "When true, include successful verdicts in the summary draft.",
                    "default": False,
                }
            },
            "additionalProperties": False,
        },
    },
    {
        "name": ToolName.PENDING_ATOMS.value,
        "description": (
            "Return unconfirmed change atoms from recent hot reload apply events. Call this "
            "after detecting a new apply event to get atoms the developer should confirm."
        ),
        "inputSchema": _NO_ARGS,
    },
    {
        "name": ToolName.RECORD_VERDICT.value,
        "description": (
            "Record per-atom developer verdicts for a specific apply event. Call after asking "
            "the developer about each atom."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "apply_index": {
                    "type": "integer",
                    "description": "The apply_index from pending-atoms to record verdicts for.",
                },
                "verdicts": {
                    "type": "object",
                    "description": (
                        "Map of atom index (string) to verdict: 'yes', 'no', or 'partial'. "
                        'E.g. {"0": "yes", "1": "no"}'
                    ),
                    "additionalProperties": {"type": "string", "enum": ["yes", "no", "partial"]},
                },
            },
            "required": ["apply_index", "verdicts"],
            "additionalProperties": False,
        },
    },
]
