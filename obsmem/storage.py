"""
File persistence layer for observational-memory.
Per-project records live under <project>/.claude/ and survive across hook invocations and sessions.

Every read tolerates a missing or corrupt file by returning defaults.
Writes create the containing directory and replace the whole file atomically.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

log = logging.getLogger(__name__)

STATE_FILENAME = ".observer-state.json"
EVENTS_FILENAME = ".tool-events.json"
PENDING_FILENAME = ".pending-observation"
OPT_OUT_FILENAME = ".no-observations"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def read_json(path, default=None):
    try:
        return json.loads(Path(path).read_text(encoding="utf-8", errors="replace"))
    except FileNotFoundError:
        return default
    except (OSError, json.JSONDecodeError) as e:
        log.warning("Ignoring unreadable %s: %s", path, e)
        return default


def write_json(path, obj) -> None:
    """Write obj as JSON via a temp file in the same directory + os.replace."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


def read_text(path) -> Optional[str]:
    """Stripped file contents, or None if missing, unreadable or blank."""
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return None
    return text or None


@dataclass(frozen=True)
class ProjectPaths:
    """Locations of every per-project record."""

    root: Path

    @classmethod
    def for_cwd(cls, cwd) -> "ProjectPaths":
        return cls(root=Path(cwd))

    @property
    def claude_dir(self) -> Path:
        return self.root / ".claude"

    @property
    def observations(self) -> Path:
        return self.claude_dir / "observations.md"

    @property
    def local_observations(self) -> Path:
        return self.claude_dir / "observations.local.md"

    @property
    def state(self) -> Path:
        return self.claude_dir / STATE_FILENAME

    @property
    def tool_events(self) -> Path:
        return self.claude_dir / EVENTS_FILENAME

    @property
    def pending_marker(self) -> Path:
        return self.claude_dir / PENDING_FILENAME

    @property
    def opt_out(self) -> Path:
        return self.claude_dir / OPT_OUT_FILENAME

    @property
    def default_plan(self) -> Path:
        return self.claude_dir / "plan.md"

    def branch_plan(self, branch: str) -> Path:
        return self.claude_dir / "plans" / f"{branch.replace('/', '-')}.md"

    def is_opted_out(self) -> bool:
        return self.opt_out.exists()


# ------------------------------------------------------------------
# Session state
# ------------------------------------------------------------------

def _as_count(value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return max(0, int(value))


@dataclass
class SessionState:
    last_line: int = 0
    last_token_count: int = 0
    force_observation: bool = False

    @classmethod
    def from_dict(cls, data) -> "SessionState":
        if not isinstance(data, dict):
            return cls()
        return cls(
            last_line=_as_count(data.get("lastLine")),
            last_token_count=_as_count(data.get("lastTokenCount")),
            force_observation=data.get("forceObservation") is True,
        )

    def to_dict(self) -> dict:
        return {
            "lastLine": self.last_line,
            "lastTokenCount": self.last_token_count,
            "forceObservation": self.force_observation,
        }


class StateStore:
    """
    Reads and writes a project's .observer-state.json.
    Last writer wins; the host serializes hook runs per session so no locking is done.
    """

    def __init__(self, paths: ProjectPaths):
        self._path = paths.state

    def read(self) -> SessionState:
        return SessionState.from_dict(read_json(self._path, default=None))

    def write(self, state: SessionState) -> None:
        write_json(self._path, state.to_dict())


# ------------------------------------------------------------------
# Pending-observation marker
# ------------------------------------------------------------------

@dataclass
class PendingMarker:
    reason: str = "session_end"
    new_tokens: int = 0
    timestamp: str = field(default_factory=_now)

    @classmethod
    def from_dict(cls, data) -> Optional["PendingMarker"]:
        if not isinstance(data, dict):
            return None
        new_tokens = data.get("newTokens")
        if isinstance(new_tokens, bool) or not isinstance(new_tokens, (int, float)):
            new_tokens = 0
        return cls(
            reason=str(data.get("reason") or "session_end"),
            new_tokens=int(new_tokens),
            timestamp=str(data.get("timestamp") or ""),
        )

    def to_dict(self) -> dict:
        return {
            "reason": self.reason,
            "timestamp": self.timestamp,
            "newTokens": self.new_tokens,
        }


def write_pending_marker(paths: ProjectPaths, marker: PendingMarker) -> None:
    write_json(paths.pending_marker, marker.to_dict())


def consume_pending_marker(paths: ProjectPaths) -> Optional[PendingMarker]:
    """Read the marker, then delete it. A corrupt marker is deleted and ignored."""
    if not paths.pending_marker.exists():
        return None
    marker = PendingMarker.from_dict(read_json(paths.pending_marker, default=None))
    try:
        paths.pending_marker.unlink()
    except FileNotFoundError:
        pass
    return marker
