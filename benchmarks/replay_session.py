#!/usr/bin/env python3
"""
Replays a real Claude Code transcript through the decision engine, simulating
a Stop after every assistant text turn, and prints where observation and
reflection cycles would have fired. Useful for tuning thresholds.

Run:
    python3 benchmarks/replay_session.py ~/.claude/projects/<hash>/<session>.jsonl \
        [--observe 30000] [--reflect 40000]

The replay uses a throwaway project directory, so real state is untouched.
Observation cycles are assumed to add nothing to the notes file.
"""

import argparse
import json
import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from obsmem.config import Configuration
from obsmem.decision_engine import Decision, DecisionEngine
from obsmem.storage import ProjectPaths
from obsmem.transcript import extract_content


def stop_points(lines: list) -> list:
    """1-based line numbers of assistant turns that carry text (where Stop fires)."""
    points = []
    for number, line in enumerate(lines, start=1):
        try:
            entry = extract_content(json.loads(line))
        except json.JSONDecodeError:
            continue
        if entry is not None and entry.role == "assistant":
            points.append(number)
    return points


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("transcript", type=Path)
    parser.add_argument("--observe", type=int, default=Configuration.observation_threshold)
    parser.add_argument("--reflect", type=int, default=Configuration.reflection_threshold)
    args = parser.parse_args()

    lines = [l for l in args.transcript.read_text(encoding="utf-8", errors="replace").split("\n") if l.strip()]
    points = stop_points(lines)
    cfg = Configuration(
        observation_threshold=args.observe,
        reflection_threshold=args.reflect,
        context_high_water=None,
    )

    counts = {d: 0 for d in Decision}
    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        paths = ProjectPaths.for_cwd(tmp / "project")
        paths.claude_dir.mkdir(parents=True)
        partial = tmp / "partial.jsonl"
        engine = DecisionEngine(paths, config=cfg)

        print(f"Replaying {len(lines)} lines, {len(points)} stops "
              f"(observe at +{cfg.observation_threshold}, reflect at {cfg.reflection_threshold})\n")
        for number in points:
            partial.write_text("\n".join(lines[:number]) + "\n", encoding="utf-8")
            report = engine.evaluate(str(partial))
            counts[report.decision] += 1
            if report.decision.requests_action:
                print(f"  line {number:>6}: {report.decision.value:<16} {report.reason}")

    print()
    for decision, n in counts.items():
        if decision is not Decision.DISABLED:
            print(f"  {decision.value:<16} {n:>5}")


if __name__ == "__main__":
    main()
