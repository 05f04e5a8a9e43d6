"""
Builds the SessionStart additionalContext payload from durable notes.

Sources, each optional: global notes, committed project notes, local
project notes, the active plan for the current branch, and the pending
marker left by the previous session (consumed on read). Nothing at all is
emitted when every source is absent.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, List, Optional

from . import config
from .storage import ProjectPaths, consume_pending_marker, read_text

log = logging.getLogger(__name__)

RESET_SOURCES = frozenset({"compact", "clear"})
KNOWN_SOURCES = frozenset({"startup", "resume"}) | RESET_SOURCES


def current_branch(cwd) -> Optional[str]:
    """Current git branch, or None when unavailable or detached."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=2,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    branch = result.stdout.strip()
    if result.returncode != 0 or not branch or branch == "HEAD":
        return None
    return branch


def build_preamble(source: str) -> str:
    if source in RESET_SOURCES:
        verb = "cleared" if source == "clear" else "compacted"
        return " ".join([
            f"The context was just {verb}.",
            "The following observations are your ONLY memory of prior work in this project.",
            'Use them to continue seamlessly. Look for "Current Task" and "Suggested Next"',
            "at the end of the observations to pick up where you left off.",
            "Do not mention the context reset or observations unless the user asks.",
        ])
    return " ".join([
        "The following observations were recorded from previous sessions in this project.",
        "Use them to maintain continuity. Do not mention them unless relevant.",
    ])


def _tagged(tag: str, body: str, **attrs) -> str:
    rendered = "".join(f' {k}="{v}"' for k, v in attrs.items())
    return f"<{tag}{rendered}>\n{body}\n</{tag}>"


class ContextInjector:
    def __init__(
        self,
        paths: ProjectPaths,
        branch_provider: Callable[[object], Optional[str]] = current_branch,
    ):
        self._paths = paths
        self._branch_provider = branch_provider

    def build(self, source: str = "startup") -> Optional[str]:
        """Return the additionalContext string, or None if there is nothing to inject."""
        if not isinstance(source, str) or source not in KNOWN_SOURCES:
            source = "startup"

        sections = self._sections()
        if not sections:
            return None

        return "\n".join([
            "<prior-observations>",
            build_preamble(source),
            "",
            "\n\n".join(sections),
            "</prior-observations>",
        ])

    def payload(self, source: str = "startup") -> Optional[dict]:
        context = self.build(source)
        if context is None:
            return None
        return {
            "hookSpecificOutput": {
                "hookEventName": "SessionStart",
                "additionalContext": context,
            }
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _sections(self) -> List[str]:
        sections = []

        global_notes = read_text(config.global_observations_path())
        if global_notes:
            sections.append(_tagged("global-observations", global_notes))

        committed = read_text(self._paths.observations)
        if committed:
            sections.append(_tagged("project-observations", committed))

        local = read_text(self._paths.local_observations)
        if local:
            sections.append(_tagged("local-observations", local))

        plan = self._active_plan()
        if plan:
            sections.append(plan)

        marker = consume_pending_marker(self._paths)
        if marker is not None:
            sections.append(_tagged(
                "pending-observation",
                f"The previous session ended ({marker.reason}) with about "
                f"{marker.new_tokens} tokens of activity that were not captured "
                "as observations. An observation cycle will run at the next stop.",
            ))
            log.info("Consumed pending marker: reason=%s", marker.reason)

        return sections

    def _active_plan(self) -> Optional[str]:
        branch = self._branch_provider(self._paths.root)
        if branch:
            text = read_text(self._paths.branch_plan(branch))
            if text:
                return _tagged("active-plan", text, branch=branch)
        text = read_text(self._paths.default_plan)
        if text:
            return _tagged("active-plan", text)
        return None
