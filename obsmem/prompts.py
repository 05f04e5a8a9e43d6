"""
Request bodies written to stderr when the stop hook exits 2.
The host's assistant reads them and runs the named workflow.
"""

from __future__ import annotations

from typing import Sequence

from .event_capture import ToolEvent

RECENT_EVENTS_IN_PROMPT = 20

OBSERVER_PROMPT = """<observation-request>
Time for an observation cycle. Before continuing, review the conversation since
the last observation and append new, durable observations to
.claude/observations.md (or .claude/observations.local.md for notes that should
not be committed).

- Date each group of observations and tag priority ([P1] critical, [P2] useful, [P3] minor).
- Record decisions, user preferences, project facts and unresolved problems.
- Do not repeat observations that are already in the file.
- End with "Current Task:" and "Suggested Next:" lines.

When done, reply briefly and stop. You can /clear afterwards; the observations
will be re-injected at the start of the next session.
</observation-request>
"""

REFLECTOR_PROMPT = """<reflection-request>
The observations file has grown past its size budget. Run a consolidation pass
over .claude/observations.md (and .claude/observations.local.md if it is the
oversized one):

- Merge duplicate and superseded observations.
- Drop [P3] items that are no longer relevant.
- Keep every [P1] item and the latest "Current Task" / "Suggested Next".
- Rewrite the file in place; do not append.

When done, reply briefly and stop.
</reflection-request>
"""


def observer_prompt(recent_events: Sequence[ToolEvent] = ()) -> str:
    if not recent_events:
        return OBSERVER_PROMPT
    lines = [OBSERVER_PROMPT.rstrip("\n"), "", "Recent significant tool activity:"]
    for event in recent_events[-RECENT_EVENTS_IN_PROMPT:]:
        lines.append(f"  - {event.summary}")
    return "\n".join(lines) + "\n"


def reflector_prompt() -> str:
    return REFLECTOR_PROMPT
