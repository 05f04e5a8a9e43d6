#!/usr/bin/env python3
"""
Stop hook for observational-memory.

Fires every time the assistant finishes a response.
Responsibilities:
  - Measure the transcript and compare new content against the thresholds
  - Exit 2 with the observer request on stderr when an observation is due
  - Exit 2 with the reflector request on stderr when the notes are oversized
  - Otherwise record the current position and exit 0

Hook event schema (Claude Code Stop):
{
  "session_id": "...",
  "cwd": "/path/to/project",
  "transcript_path": "/path/to/session.jsonl",
  "stop_hook_active": false
}

stop_hook_active is true when this stop was itself caused by a previous
exit 2; the engine never acts on it.
"""

import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem import config
from obsmem.decision_engine import Decision, DecisionEngine
from obsmem.event_capture import EventLog
from obsmem.prompts import RECENT_EVENTS_IN_PROMPT, observer_prompt, reflector_prompt
from obsmem.storage import ProjectPaths

config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    filename=str(config.log_path()),
    level=logging.INFO,
    format="%(asctime)s [stop_check] %(levelname)s %(message)s",
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
    engine = DecisionEngine(paths, config=config.load_config())

    report = engine.evaluate(
        event.get("transcript_path"),
        stop_hook_active=event.get("stop_hook_active") is True,
    )

    if report.decision is Decision.OBSERVATION_DUE:
        recent = EventLog(paths).recent(RECENT_EVENTS_IN_PROMPT)
        sys.stderr.write(observer_prompt(recent))
        sys.exit(2)

    if report.decision is Decision.REFLECTION_DUE:
        sys.stderr.write(reflector_prompt())
        sys.exit(2)

    sys.exit(0)


if __name__ == "__main__":
    main()
