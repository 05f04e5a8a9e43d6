"""
Records significant tool invocations into a bounded log (.claude/.tool-events.json).
The observer request quotes the most recent entries as summarization context.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from .storage import ProjectPaths, read_json, write_json

log = logging.getLogger(__name__)

MAX_EVENTS = 100

# Bash commands that indicate significant operations
SIGNIFICANT_BASH_KEYWORDS = (
    "test", "build", "deploy", "push", "install", "publish", "migrate", "npm run", "npx",
)

# Response keywords that indicate failures
FAILURE_KEYWORDS = ("error", "failed", "FAIL", "ERR!", "exception", "rejected")

_COMMAND_PREVIEW_CHARS = 80


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ToolKind(Enum):
    WRITE = "Write"
    EDIT = "Edit"
    MULTI_EDIT = "MultiEdit"
    TASK_CREATE = "TaskCreate"
    TASK_UPDATE = "TaskUpdate"
    BASH = "Bash"
    OTHER = "other"

    @classmethod
    def classify(cls, tool_name: str) -> "ToolKind":
        for kind in cls:
            if kind is not cls.OTHER and kind.value == tool_name:
                return kind
        return cls.OTHER


# Kinds that are significant no matter what they did
ALWAYS_SIGNIFICANT = frozenset({
    ToolKind.WRITE,
    ToolKind.EDIT,
    ToolKind.MULTI_EDIT,
    ToolKind.TASK_CREATE,
    ToolKind.TASK_UPDATE,
})


@dataclass
class ToolEvent:
    tool: str
    summary: str
    id: str = ""
    timestamp: str = field(default_factory=_now)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "tool": self.tool,
            "id": self.id,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data) -> Optional["ToolEvent"]:
        if not isinstance(data, dict):
            return None
        return cls(
            tool=str(data.get("tool", "")),
            summary=str(data.get("summary", "")),
            id=str(data.get("id", "")),
            timestamp=str(data.get("timestamp", "")),
        )


def response_text(response) -> str:
    """
    Flatten a tool_response into plain text.
    The structure varies by tool:
      Bash:       {'stdout': ..., 'stderr': ..., 'interrupted': bool, ...}
      Read:       {'type': 'text', 'file': {'filePath': ..., 'content': ...}}
      Edit/Write: {'filePath': ..., ...}
      other:      fall back to JSON dump
    """
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    if isinstance(response, list):
        return "\n".join(response_text(item) for item in response)
    if not isinstance(response, dict):
        return str(response)

    if "stdout" in response or "stderr" in response:
        return "\n".join(
            str(response[key]) for key in ("stdout", "stderr") if response.get(key)
        )
    if "file" in response and isinstance(response["file"], dict):
        return str(response["file"].get("content", ""))
    if isinstance(response.get("text"), str):
        return response["text"]
    return json.dumps(response, default=str)


def has_failure(text: str) -> bool:
    return any(keyword in text for keyword in FAILURE_KEYWORDS)


def is_significant(kind: ToolKind, tool_input: dict, result: str) -> bool:
    if kind in ALWAYS_SIGNIFICANT:
        return True
    if kind is ToolKind.BASH:
        command = str(tool_input.get("command") or "")
        if any(keyword in command for keyword in SIGNIFICANT_BASH_KEYWORDS):
            return True
        return has_failure(result)
    return False


def summarize(kind: ToolKind, tool_name: str, tool_input: dict, result: str) -> str:
    if kind is ToolKind.WRITE:
        return f"Wrote file: {_basename(tool_input.get('file_path'))}"
    if kind in (ToolKind.EDIT, ToolKind.MULTI_EDIT):
        return f"Edited file: {_basename(tool_input.get('file_path'))}"
    if kind is ToolKind.BASH:
        command = str(tool_input.get("command") or "")
        if len(command) > _COMMAND_PREVIEW_CHARS:
            command = command[:_COMMAND_PREVIEW_CHARS] + "..."
        prefix = "[FAILED] " if has_failure(result) else ""
        return f"{prefix}Ran: {command}"
    if kind in (ToolKind.TASK_CREATE, ToolKind.TASK_UPDATE):
        subject = tool_input.get("subject") or tool_input.get("taskId") or ""
        return f"{tool_name}: {subject}"
    return tool_name


def _basename(file_path) -> str:
    if not file_path:
        return "unknown"
    return re.split(r"[/\\]", str(file_path))[-1]


class EventLog:
    """FIFO log of significant tool events, capped at max_events."""

    def __init__(self, paths: ProjectPaths, max_events: int = MAX_EVENTS):
        self._path = paths.tool_events
        self._max_events = max_events

    def read(self) -> List[ToolEvent]:
        raw = read_json(self._path, default=[])
        if not isinstance(raw, list):
            return []
        return [e for e in (ToolEvent.from_dict(r) for r in raw) if e is not None]

    def append(self, event: ToolEvent) -> List[ToolEvent]:
        events = self.read()
        events.append(event)
        if len(events) > self._max_events:
            events = events[len(events) - self._max_events:]
        write_json(self._path, [e.to_dict() for e in events])
        return events

    def recent(self, n: int) -> List[ToolEvent]:
        if n <= 0:
            return []
        return self.read()[-n:]


def capture(
    paths: ProjectPaths,
    tool_name: str,
    tool_input,
    tool_response=None,
    tool_use_id: str = "",
) -> Optional[ToolEvent]:
    """Append the tool call to the event log if significant. Returns the event or None."""
    if not isinstance(tool_input, dict):
        tool_input = {}
    kind = ToolKind.classify(tool_name)
    result = response_text(tool_response)
    if not is_significant(kind, tool_input, result):
        return None

    event = ToolEvent(
        tool=tool_name,
        id=tool_use_id or "",
        summary=summarize(kind, tool_name, tool_input, result),
    )
    EventLog(paths).append(event)
    log.info("Captured %s event: %s", tool_name, event.summary)
    return event
