#!/usr/bin/env python3
"""
Measures per-invocation latency of the stop_check and post_tool_use hooks
against a synthetic project and transcript.
Run from the repo root:
    python3 benchmarks/bench_hook_latency.py [transcript_tokens]

Claude Code gives Stop hooks a few seconds; the transcript is re-read on
every stop, so latency grows with transcript size.
"""

import json
import os
import subprocess
import sys
import tempfile
import time
from pathlib import Path
from statistics import mean, median, stdev

REPO = Path(__file__).resolve().parents[1]
PYTHON = sys.executable

TOOLS = [
    ("Write", {"file_path": "/src/app.py", "content": "print()"}, {"filePath": "/src/app.py"}),
    ("Bash",  {"command": "npm run test"},                      {"stdout": "ok", "stderr": ""}),
    ("Read",  {"file_path": "/src/app.py"},                     {"file": {"content": "x" * 800}}),
]


def write_transcript(path: Path, tokens: int) -> None:
    text = "x" * 200
    with open(path, "w") as f:
        for i in range(tokens // 50):
            role = "user" if i % 2 == 0 else "assistant"
            f.write(json.dumps({
                "type": role,
                "message": {"role": role, "content": [{"type": "text", "text": text}]},
            }) + "\n")


def run_hook(script: str, event: dict, env: dict) -> float:
    start = time.perf_counter()
    proc = subprocess.run(
        [PYTHON, str(REPO / "hooks" / script)],
        input=json.dumps(event),
        capture_output=True,
        text=True,
        env=env,
    )
    elapsed = time.perf_counter() - start
    if proc.returncode not in (0, 2):
        print(f"  STDERR: {proc.stderr[:200]}", file=sys.stderr)
    return elapsed


def bench(hook_script: str, events: list[dict], env: dict, n: int = 30) -> dict:
    times = []
    for _ in range(n):
        for ev in events:
            times.append(run_hook(hook_script, ev, env))
    return {
        "n": len(times),
        "mean_ms": mean(times) * 1000,
        "median_ms": median(times) * 1000,
        "stdev_ms": stdev(times) * 1000,
        "p95_ms": sorted(times)[int(len(times) * 0.95)] * 1000,
        "max_ms": max(times) * 1000,
    }


def main():
    tokens = int(sys.argv[1]) if len(sys.argv) > 1 else 100_000

    with tempfile.TemporaryDirectory() as tmp:
        tmp = Path(tmp)
        project = tmp / "project"
        (project / ".claude").mkdir(parents=True)
        transcript = tmp / "transcript.jsonl"
        write_transcript(transcript, tokens)
        env = {**os.environ, "OBSMEM_HOME": str(tmp / "home")}

        # A threshold nothing can reach keeps every stop on the full measure path
        (tmp / "home").mkdir()
        (tmp / "home" / "config.json").write_text(json.dumps({"observationThreshold": 10**12}))

        stop_events = [{"cwd": str(project), "transcript_path": str(transcript)}]
        post_events = [
            {
                "cwd": str(project),
                "tool_name": name,
                "tool_use_id": f"tu-bench-{i:03d}",
                "tool_input": inp,
                "tool_response": resp,
            }
            for i, (name, inp, resp) in enumerate(TOOLS)
        ]

        print("Warming up...")
        run_hook("stop_check.py", stop_events[0], env)
        for ev in post_events:
            run_hook("post_tool_use.py", ev, env)

        print(f"\nBenchmarking stop_check on a ~{tokens} token transcript...")
        stop = bench("stop_check.py", stop_events, env)
        print(f"  mean={stop['mean_ms']:.1f}ms  median={stop['median_ms']:.1f}ms  "
              f"p95={stop['p95_ms']:.1f}ms  max={stop['max_ms']:.1f}ms")

        print(f"\nBenchmarking post_tool_use ({len(post_events)*30} calls)...")
        post = bench("post_tool_use.py", post_events, env)
        print(f"  mean={post['mean_ms']:.1f}ms  median={post['median_ms']:.1f}ms  "
              f"p95={post['p95_ms']:.1f}ms  max={post['max_ms']:.1f}ms")

    print("\n(Stop hooks time out after ~10s and PostToolUse after ~5s, "
          "so anything well under a second is fine)")


if __name__ == "__main__":
    main()
