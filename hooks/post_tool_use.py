#!/usr/bin/env python3
"""
PostToolUse hook for observational-memory.

Receives a JSON event on stdin with the tool result.
Responsibilities:
  - Classify the tool call; keep Write/Edit/MultiEdit/TaskCreate/TaskUpdate
    always, and Bash when the command is high-impact or the output failed
  - Append a one-line summary to .claude/.tool-events.json (capped, FIFO)

Hook event schema (Claude Code PostToolUse):
{
  "session_id": "...",
  "cwd": "/path/to/project",
  "tool_name": "...",
  "tool_input": { ... },
  "tool_use_id": "...",
  "tool_response": { ... }   (structure varies by tool)
}
"""

import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem import config
from obsmem.event_capture import capture
from obsmem.storage import ProjectPaths

config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    filename=str(config.log_path()),
    level=logging.INFO,
    format="%(asctime)s [post_tool_use] %(levelname)s %(message)s",
)
log = logging.getLogger(__name__)


def main():
    try:
        event = json.load(sys.stdin)
    except Exception as e:
        log.error("Failed to parse hook event: %s", e)
        sys.exit(0)
    if not isinstance(event, dict):
        sys.exit(0)

    cwd = event.get("cwd") or os.getcwd()
    paths = ProjectPaths.for_cwd(cwd)
    if not config.load_config().enabled or paths.is_opted_out():
        sys.exit(0)

    capture(
        paths,
        tool_name=event.get("tool_name", ""),
        tool_input=event.get("tool_input", {}),
        tool_response=event.get("tool_response"),
        tool_use_id=event.get("tool_use_id", ""),
    )
    sys.exit(0)


if __name__ == "__main__":
    main()
