#!/usr/bin/env python3
"""
SessionEnd hook for observational-memory.

Fires when a Claude Code session ends (exit, logout, /clear, ...).
Responsibilities:
  - If the session produced uncaptured activity, leave a
    .pending-observation marker for the next SessionStart and set the
    force-observation flag for the next Stop
  - Always exit 0; SessionEnd must never block

Hook event schema (Claude Code SessionEnd):
{
  "session_id": "...",
  "cwd": "/path/to/project",
  "transcript_path": "/path/to/session.jsonl",
  "reason": "exit" | "clear" | "logout" | "prompt_input_exit" | "other"
}
"""

import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem import config
from obsmem.decision_engine import DecisionEngine
from obsmem.storage import ProjectPaths

config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    filename=str(config.log_path()),
    level=logging.INFO,
    format="%(asctime)s [session_end] %(levelname)s %(message)s",
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
    engine = DecisionEngine(ProjectPaths.for_cwd(cwd), config=config.load_config())
    engine.record_session_end(event.get("transcript_path"), reason=event.get("reason"))
    sys.exit(0)


if __name__ == "__main__":
    main()
