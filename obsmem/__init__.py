"""observational-memory: threshold-driven observation hooks for Claude Code."""

from .tokens import estimate_tokens
from .transcript import (
    MeasuredTranscript,
    ParsedTranscript,
    TranscriptEntry,
    measure_transcript,
    parse_transcript,
)
from .config import Configuration, load_config
from .storage import PendingMarker, ProjectPaths, SessionState, StateStore
from .decision_engine import Decision, DecisionEngine, DecisionReport
from .context_injector import ContextInjector
from .event_capture import EventLog, ToolEvent, ToolKind

__all__ = [
    "estimate_tokens",
    "MeasuredTranscript",
    "ParsedTranscript",
    "TranscriptEntry",
    "measure_transcript",
    "parse_transcript",
    "Configuration",
    "load_config",
    "PendingMarker",
    "ProjectPaths",
    "SessionState",
    "StateStore",
    "Decision",
    "DecisionEngine",
    "DecisionReport",
    "ContextInjector",
    "EventLog",
    "ToolEvent",
    "ToolKind",
]
