"""
Decides, once per hook invocation, whether the assistant should run an
observation or reflection cycle.

Evaluation order:
1. Guard: disabled config, opted-out project, stop-hook re-entry or missing
   transcript → DISABLED, state untouched
2. Observation: force flag set, new content tokens since the last check
   >= observation threshold, or context window past its high-water mark
   with new activity → OBSERVATION_DUE
3. Reflection: any monitored notes file >= reflection threshold
   → REFLECTION_DUE
4. Otherwise → BELOW_THRESHOLD

Every decision past the guard advances the stored position, so the delta is
always "tokens since the last check" (a rolling window) and one large burst
is never measured twice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional

from .config import Configuration
from .storage import (
    PendingMarker,
    ProjectPaths,
    SessionState,
    StateStore,
    write_pending_marker,
)
from .tokens import estimate_tokens
from .transcript import (
    MeasuredTranscript,
    context_tokens_used,
    last_usage,
    measure_transcript,
)

log = logging.getLogger(__name__)


class Decision(Enum):
    DISABLED = "disabled"
    BELOW_THRESHOLD = "below_threshold"
    OBSERVATION_DUE = "observation_due"
    REFLECTION_DUE = "reflection_due"

    @property
    def requests_action(self) -> bool:
        return self in (Decision.OBSERVATION_DUE, Decision.REFLECTION_DUE)


@dataclass
class DecisionReport:
    decision: Decision
    reason: str
    new_tokens: int = 0
    measured: MeasuredTranscript = field(default_factory=MeasuredTranscript)
    notes_tokens: Dict[str, int] = field(default_factory=dict)   # notes file name → tokens
    context_utilization: Optional[float] = None

    def summary(self) -> str:
        util = (
            f"{self.context_utilization:.0%}"
            if self.context_utilization is not None else "n/a"
        )
        return (
            f"{self.decision.value} ({self.reason}) | "
            f"new_tokens={self.new_tokens} "
            f"lines={self.measured.total_lines} "
            f"content_tokens={self.measured.content_tokens} "
            f"context={util}"
        )


class DecisionEngine:
    def __init__(
        self,
        paths: ProjectPaths,
        config: Optional[Configuration] = None,
        store: Optional[StateStore] = None,
        usage_reader: Callable[[str], Optional[dict]] = last_usage,
    ):
        self._paths = paths
        self._config = config or Configuration()
        self._store = store or StateStore(paths)
        self._usage_reader = usage_reader

    # ------------------------------------------------------------------
    # Stop hook
    # ------------------------------------------------------------------

    def evaluate(
        self,
        transcript_path: Optional[str],
        stop_hook_active: bool = False,
    ) -> DecisionReport:
        guard = self._guard()
        if guard is None and stop_hook_active:
            guard = "stop hook already active"
        if guard is None and not transcript_path:
            guard = "no transcript"
        if guard is not None:
            log.info("Skipping evaluation: %s", guard)
            return DecisionReport(Decision.DISABLED, guard)

        state = self._store.read()
        measured = measure_transcript(transcript_path)
        new_tokens = measured.content_tokens - state.last_token_count
        utilization = self._context_utilization(transcript_path)
        checked = SessionState(
            last_line=measured.total_lines,
            last_token_count=measured.content_tokens,
            force_observation=False,
        )

        report = DecisionReport(
            Decision.BELOW_THRESHOLD,
            "below thresholds",
            new_tokens=new_tokens,
            measured=measured,
            context_utilization=utilization,
        )

        observation_reason = self._observation_reason(
            state, measured, new_tokens, utilization
        )
        if observation_reason is not None:
            self._store.write(checked)
            report.decision = Decision.OBSERVATION_DUE
            report.reason = observation_reason
            log.info("Decision: %s", report.summary())
            return report

        report.notes_tokens = self.notes_tokens()
        oversized = [
            name for name, tokens in report.notes_tokens.items()
            if tokens >= self._config.reflection_threshold
        ]
        self._store.write(checked)
        if oversized:
            report.decision = Decision.REFLECTION_DUE
            report.reason = f"notes over reflection threshold: {', '.join(oversized)}"

        log.info("Decision: %s", report.summary())
        return report

    def notes_tokens(self) -> Dict[str, int]:
        """Estimated size of each existing monitored notes file, checked independently."""
        sizes = {}
        for path in (self._paths.observations, self._paths.local_observations):
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                continue
            sizes[path.name] = estimate_tokens(text)
        return sizes

    # ------------------------------------------------------------------
    # PreCompact hook / explicit flush
    # ------------------------------------------------------------------

    def request_observation(self) -> bool:
        """Set the force flag so the next evaluation observes unconditionally."""
        guard = self._guard()
        if guard is not None:
            log.info("Not forcing observation: %s", guard)
            return False
        state = self._store.read()
        state.force_observation = True
        self._store.write(state)
        log.info("Force-observation flag set")
        return True

    # ------------------------------------------------------------------
    # SessionEnd hook
    # ------------------------------------------------------------------

    def record_session_end(
        self,
        transcript_path: Optional[str],
        reason: Optional[str] = None,
    ) -> Optional[PendingMarker]:
        """
        Leave a pending-observation marker when the session ends with
        uncaptured activity, and set the force flag for the next session.
        Position is left where it was so the next check sees the same delta.
        """
        guard = self._guard()
        if guard is None and not transcript_path:
            guard = "no transcript"
        if guard is not None:
            log.info("Skipping session-end check: %s", guard)
            return None

        state = self._store.read()
        measured = measure_transcript(transcript_path)
        new_tokens = measured.content_tokens - state.last_token_count
        if new_tokens < self._config.pending_threshold and not state.force_observation:
            log.info("Session ended with %d new tokens, nothing pending", new_tokens)
            return None

        marker = PendingMarker(reason=reason or "session_end", new_tokens=new_tokens)
        write_pending_marker(self._paths, marker)
        state.force_observation = True
        self._store.write(state)
        log.info(
            "Session ended with uncaptured activity (%d new tokens, reason=%s)",
            new_tokens,
            marker.reason,
        )
        return marker

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _guard(self) -> Optional[str]:
        if not self._config.enabled:
            return "disabled in config"
        if self._paths.is_opted_out():
            return "project opted out"
        return None

    def _observation_reason(
        self,
        state: SessionState,
        measured: MeasuredTranscript,
        new_tokens: int,
        utilization: Optional[float],
    ) -> Optional[str]:
        if state.force_observation:
            return "forced"
        if new_tokens >= self._config.observation_threshold:
            return f"{new_tokens} new tokens"
        high_water = self._config.context_high_water
        if (
            high_water
            and utilization is not None
            and utilization >= high_water
            and measured.total_lines > state.last_line
        ):
            return f"context window at {utilization:.0%}"
        return None

    def _context_utilization(self, transcript_path: str) -> Optional[float]:
        if not self._config.context_high_water or self._config.context_window_tokens <= 0:
            return None
        usage = self._usage_reader(transcript_path)
        if not usage:
            return None
        return context_tokens_used(usage) / self._config.context_window_tokens
