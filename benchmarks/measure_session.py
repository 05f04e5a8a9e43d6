#!/usr/bin/env python3
"""
Prints a dashboard of observation state for every registered project
(or the given project directories or registered project names).
Run this anytime during or after a real Claude Code session:

    python3 benchmarks/measure_session.py [project_dir_or_name ...]

Or watch it live:
    watch -n 5 python3 benchmarks/measure_session.py
"""

import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem import config
from obsmem.decision_engine import DecisionEngine
from obsmem.event_capture import EventLog
from obsmem.storage import ProjectPaths, PendingMarker, StateStore, read_json


def fmt_tokens(n: int) -> str:
    if n >= 1000:
        return f"{n/1000:.1f}k"
    return str(n)


def bar(value: int, limit: int, width: int = 30) -> str:
    if limit <= 0:
        return ""
    filled = min(width, int(width * value / limit))
    return "█" * filled + "·" * (width - filled)


def show_project(root: Path, cfg: config.Configuration) -> None:
    paths = ProjectPaths.for_cwd(root)
    state = StateStore(paths).read()

    print(f"\n{root}")
    if paths.is_opted_out():
        print("  opted out (.claude/.no-observations)")
        return

    print(f"  position:          line {state.last_line}, "
          f"{fmt_tokens(state.last_token_count)} content tokens")
    print(f"  force observation: {'yes' if state.force_observation else 'no'}")

    notes = DecisionEngine(paths, config=cfg).notes_tokens()
    if not notes:
        print("  notes:             none")
    for name, tokens in notes.items():
        print(f"  {name:<22} {fmt_tokens(tokens):>6} tokens  "
              f"{bar(tokens, cfg.reflection_threshold)}")

    marker = PendingMarker.from_dict(read_json(paths.pending_marker))
    if marker is not None:
        print(f"  pending:           {marker.reason}, "
              f"{fmt_tokens(marker.new_tokens)} tokens ({marker.timestamp[:19]})")

    events = EventLog(paths).recent(5)
    if events:
        print("  recent events:")
        for event in events:
            print(f"    • {event.summary[:70]}")


def resolve_projects(args) -> list:
    if not args:
        return config.known_projects()
    projects = []
    for arg in args:
        if Path(arg).is_dir():
            projects.append(Path(arg))
            continue
        found = config.find_project(arg)
        if found is None:
            print(f"Unknown project: {arg}", file=sys.stderr)
        else:
            projects.append(found)
    return projects


def main():
    cfg = config.load_config()
    projects = resolve_projects(sys.argv[1:])

    print(f"\n{'='*60}")
    print(f"  observational-memory  —  {datetime.now().strftime('%H:%M:%S')}")
    print(f"{'='*60}")
    print(f"\nenabled={cfg.enabled}  observe at +{fmt_tokens(cfg.observation_threshold)}  "
          f"reflect at {fmt_tokens(cfg.reflection_threshold)}")

    if not projects:
        print("\nNo registered projects. Run a session with hooks active first.")
    for root in projects:
        show_project(root, cfg)

    print(f"\n{'='*60}\n")


if __name__ == "__main__":
    main()
