#!/usr/bin/env python3
"""
PreCompact hook for observational-memory.

Fires just before Claude Code compacts the conversation.
Responsibilities:
  - Set the force-observation flag so the next Stop hook runs an
    observation cycle regardless of thresholds

Hook event schema (Claude Code PreCompact):
{
  "session_id": "...",
  "cwd": "/path/to/project",
  "trigger": "manual" | "auto"
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
    format="%(asctime)s [pre_compact] %(levelname)s %(message)s",
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
    log.info("pre_compact fired: trigger=%s cwd=%s", event.get("trigger", "unknown"), cwd)

    engine = DecisionEngine(ProjectPaths.for_cwd(cwd), config=config.load_config())
    engine.request_observation()
    sys.exit(0)


if __name__ == "__main__":
    main()
