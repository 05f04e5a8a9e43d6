#!/usr/bin/env python3
"""
SessionStart hook for observational-memory.

Fires at the beginning of each Claude Code session (startup, resume, or
after /compact or /clear).
Responsibilities:
  - Register the project in the global config's project list
  - Inject global/project/local observations, the active plan and any
    pending-observation notice as additionalContext
  - Emit nothing at all when there is nothing to inject

Hook event schema (Claude Code SessionStart):
{
  "session_id": "...",
  "cwd": "/path/to/project",
  "source": "startup" | "resume" | "compact" | "clear"
}

Output JSON to stdout:
{
  "hookSpecificOutput": {
    "hookEventName": "SessionStart",
    "additionalContext": "..."
  }
}
"""

import json
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem import config
from obsmem.context_injector import ContextInjector
from obsmem.storage import ProjectPaths

config.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
logging.basicConfig(
    filename=str(config.log_path()),
    level=logging.INFO,
    format="%(asctime)s [session_start] %(levelname)s %(message)s",
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
    source = event.get("source")
    if not isinstance(source, str) or not source:
        source = "startup"
    cfg = config.load_config()
    paths = ProjectPaths.for_cwd(cwd)
    log.info("session_start: source=%s cwd=%s", source, cwd)

    if not cfg.enabled or paths.is_opted_out():
        log.info("Observations disabled for %s", cwd)
        sys.exit(0)

    try:
        config.register_project(cwd)
    except OSError as e:
        log.warning("Could not register project %s: %s", cwd, e)

    payload = ContextInjector(paths).payload(source)
    if payload is None:
        log.info("Nothing to inject")
        sys.exit(0)

    log.info(
        "Injecting %d chars of prior observations",
        len(payload["hookSpecificOutput"]["additionalContext"]),
    )
    sys.stdout.write(json.dumps(payload))
    sys.exit(0)


if __name__ == "__main__":
    main()
