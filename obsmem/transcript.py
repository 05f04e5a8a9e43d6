"""
Reads Claude Code JSONL transcripts.

Transcripts are append-only, one JSON object per line. Positions are tracked
by non-blank line count rather than byte offset, so a transcript rewritten
with identical prior content keeps the same position.

Only user/assistant text blocks count as conversational content; tool_use,
tool_result and thinking blocks are skipped for token accounting but their
lines still advance the position.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .tokens import estimate_tokens

log = logging.getLogger(__name__)

CONTENT_TYPES = frozenset({"user", "assistant"})


@dataclass
class TranscriptEntry:
    role: str                        # user | assistant
    text: str
    timestamp: Optional[str] = None


@dataclass
class MeasuredTranscript:
    total_lines: int = 0
    content_tokens: int = 0


@dataclass
class ParsedTranscript:
    entries: List[TranscriptEntry] = field(default_factory=list)
    total_lines: int = 0


def extract_content(entry) -> Optional[TranscriptEntry]:
    """
    Return the text content of a single transcript entry, or None if the
    entry is not a user/assistant message with at least one text block.
    """
    if not isinstance(entry, dict):
        return None
    entry_type = entry.get("type")
    if entry_type not in CONTENT_TYPES:
        return None

    message = entry.get("message")
    if not isinstance(message, dict) or not message.get("content"):
        return None

    content = message["content"]
    if isinstance(content, list):
        blocks = content
    else:
        blocks = [{"type": "text", "text": str(content)}]

    texts = [
        block["text"]
        for block in blocks
        if isinstance(block, dict)
        and block.get("type") == "text"
        and isinstance(block.get("text"), str)
        and block["text"]
    ]
    if not texts:
        return None

    return TranscriptEntry(
        role=message.get("role") or entry_type,
        text="\n".join(texts),
        timestamp=entry.get("timestamp"),
    )


def measure_transcript(path) -> MeasuredTranscript:
    """
    Count non-blank lines and estimate content tokens.
    Never raises: an unreadable transcript measures as empty.
    """
    lines = _read_lines(path)
    if lines is None:
        return MeasuredTranscript()

    measured = MeasuredTranscript()
    for line in lines:
        measured.total_lines += 1
        extracted = _parse_line(line)
        if extracted is not None:
            measured.content_tokens += estimate_tokens(extracted.text)
    return measured


def parse_transcript(path, start_line: int = 0) -> ParsedTranscript:
    """
    Return the content entries located strictly after the 1-based line offset
    start_line, together with the total non-blank line count.
    """
    lines = _read_lines(path)
    if lines is None:
        return ParsedTranscript()

    parsed = ParsedTranscript()
    for line in lines:
        parsed.total_lines += 1
        if parsed.total_lines <= start_line:
            continue
        extracted = _parse_line(line)
        if extracted is not None:
            parsed.entries.append(extracted)
    return parsed


def last_usage(path) -> Optional[dict]:
    """Return the usage dict of the last message that reports one."""
    lines = _read_lines(path)
    if lines is None:
        return None

    usage = None
    for line in lines:
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(entry, dict):
            continue
        message = entry.get("message")
        if isinstance(message, dict) and isinstance(message.get("usage"), dict):
            usage = message["usage"]
    return usage


def context_tokens_used(usage: dict) -> int:
    """Tokens occupying the context window according to a usage dict."""
    total = 0
    for key in ("input_tokens", "cache_creation_input_tokens", "cache_read_input_tokens"):
        value = usage.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            total += int(value)
    return total


# ------------------------------------------------------------------
# Internal helpers
# ------------------------------------------------------------------

def _read_lines(path) -> Optional[List[str]]:
    """Non-blank, stripped lines of the file, or None if it can't be read."""
    if not path:
        return None
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        log.debug("Could not read transcript %s: %s", path, e)
        return None
    # Split on \n only; JSON strings may legally contain other line separators
    return [line.strip() for line in content.split("\n") if line.strip()]


def _parse_line(line: str) -> Optional[TranscriptEntry]:
    try:
        entry = json.loads(line)
    except json.JSONDecodeError:
        return None  # malformed line
    return extract_content(entry)
