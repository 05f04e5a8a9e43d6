"""
Process-wide configuration for observational-memory.
Lives at ~/.claude/observational-memory/config.json and is re-read on every hook invocation.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .storage import read_json, write_json

log = logging.getLogger(__name__)

# Allow test harnesses to redirect the config dir via env var
_home_override = os.environ.get("OBSMEM_HOME")
CONFIG_DIR = (
    Path(_home_override) if _home_override
    else Path.home() / ".claude" / "observational-memory"
)
CONFIG_PATH = CONFIG_DIR / "config.json"
GLOBAL_OBSERVATIONS_FILENAME = "observations.md"
LOG_FILENAME = "hooks.log"

# JSON key → dataclass field
_KEYS = {
    "observationThreshold": "observation_threshold",
    "reflectionThreshold": "reflection_threshold",
    "enabled": "enabled",
    "pendingThreshold": "pending_threshold",
    "contextWindowTokens": "context_window_tokens",
    "contextHighWater": "context_high_water",
}


@dataclass(frozen=True)
class Configuration:
    observation_threshold: int = 30000
    reflection_threshold: int = 40000
    enabled: bool = True
    pending_threshold: int = 5000        # min new tokens for session-end to leave a marker
    context_window_tokens: int = 200000
    context_high_water: Optional[float] = 0.65   # None or 0 disables the utilization trigger

    @classmethod
    def from_dict(cls, data: dict) -> "Configuration":
        """Merge known keys from a config.json dict over the defaults."""
        defaults = cls()
        values = {}
        for key, value in data.items():
            name = _KEYS.get(key)
            if name is None:
                continue
            default = getattr(defaults, name)
            if _type_matches(value, default):
                values[name] = value
            else:
                log.warning("Ignoring config %s=%r (bad type)", key, value)
        return cls(**values)


def _type_matches(value, default) -> bool:
    if default is None or isinstance(default, float):
        return value is None or (
            isinstance(value, (int, float)) and not isinstance(value, bool)
        )
    if isinstance(default, bool):
        return isinstance(value, bool)
    return isinstance(value, int) and not isinstance(value, bool)


def load_config() -> Configuration:
    """Load global configuration, merged with defaults. Never raises."""
    raw = read_json(CONFIG_PATH, default=None)
    if not isinstance(raw, dict):
        return Configuration()
    return Configuration.from_dict(raw)


def global_observations_path() -> Path:
    return CONFIG_DIR / GLOBAL_OBSERVATIONS_FILENAME


def log_path() -> Path:
    return CONFIG_DIR / LOG_FILENAME


# ------------------------------------------------------------------
# Project registry
# ------------------------------------------------------------------

def register_project(cwd) -> bool:
    """
    Record a project directory in config.json's "projects" list.
    Returns True if it was newly added. Other config keys are preserved.
    """
    project = str(Path(cwd).resolve())
    raw = read_json(CONFIG_PATH, default=None)
    if not isinstance(raw, dict):
        raw = {}
    projects = raw.get("projects")
    if not isinstance(projects, list):
        projects = []
    if project in projects:
        return False
    projects.append(project)
    raw["projects"] = projects
    write_json(CONFIG_PATH, raw)
    log.info("Registered project %s", project)
    return True


def known_projects() -> List[Path]:
    """Registered project directories that still exist."""
    raw = read_json(CONFIG_PATH, default=None)
    if not isinstance(raw, dict) or not isinstance(raw.get("projects"), list):
        return []
    return [
        Path(p) for p in raw["projects"]
        if isinstance(p, str) and Path(p).is_dir()
    ]


def find_project(name: str) -> Optional[Path]:
    """Look up a registered project by directory name."""
    for project in known_projects():
        if project.name == name:
            return project
    return None
