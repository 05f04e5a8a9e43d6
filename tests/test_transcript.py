"""Tests for transcript measurement and the token estimator."""

import json

import pytest

from obsmem.tokens import estimate_tokens
from obsmem.transcript import (
    context_tokens_used,
    extract_content,
    last_usage,
    measure_transcript,
    parse_transcript,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _message(role: str, text: str, ts: str = "2026-01-01T00:00:00Z") -> dict:
    return {
        "type": role,
        "timestamp": ts,
        "message": {"role": role, "content": [{"type": "text", "text": text}]},
    }


def _write(path, entries) -> None:
    lines = [e if isinstance(e, str) else json.dumps(e) for e in entries]
    path.write_text("\n".join(lines) + "\n")


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestEstimateTokens:
    def test_rounds_up(self):
        assert estimate_tokens("abcde") == 2

    def test_exact_multiple(self):
        assert estimate_tokens("x" * 200) == 50

    def test_empty(self):
        assert estimate_tokens("") == 0


class TestExtractContent:
    def test_user_text(self):
        entry = extract_content(_message("user", "hello"))
        assert entry.role == "user"
        assert entry.text == "hello"
        assert entry.timestamp == "2026-01-01T00:00:00Z"

    def test_string_content_is_one_text_block(self):
        entry = extract_content(
            {"type": "user", "message": {"role": "user", "content": "plain"}}
        )
        assert entry.text == "plain"

    def test_joins_text_blocks_and_skips_others(self):
        entry = extract_content({
            "type": "assistant",
            "message": {
                "role": "assistant",
                "content": [
                    {"type": "thinking", "thinking": "hmm"},
                    {"type": "text", "text": "one"},
                    {"type": "tool_use", "id": "t", "name": "Read", "input": {}},
                    {"type": "text", "text": "two"},
                ],
            },
        })
        assert entry.text == "one\ntwo"

    def test_tool_only_entry_is_not_content(self):
        assert extract_content({
            "type": "assistant",
            "message": {
                "role": "assistant",
                "content": [{"type": "tool_use", "id": "t", "name": "Read", "input": {}}],
            },
        }) is None

    def test_other_entry_types_ignored(self):
        assert extract_content({"type": "progress", "message": None}) is None
        assert extract_content({"type": "summary", "summary": "x"}) is None

    def test_role_falls_back_to_type(self):
        entry = extract_content(
            {"type": "assistant", "message": {"content": [{"type": "text", "text": "x"}]}}
        )
        assert entry.role == "assistant"

    def test_non_dict_entry(self):
        assert extract_content([1, 2]) is None


class TestMeasureTranscript:
    def test_missing_file_measures_empty(self, tmp_path):
        measured = measure_transcript(tmp_path / "nope.jsonl")
        assert measured.total_lines == 0
        assert measured.content_tokens == 0

    def test_counts_every_non_blank_line(self, tmp_path):
        path = tmp_path / "t.jsonl"
        path.write_text(
            json.dumps(_message("user", "x" * 40)) + "\n"
            "\n"
            "{not json\n"
            "   \n"
            + json.dumps({"type": "progress"}) + "\n"
            + json.dumps(_message("assistant", "y" * 8)) + "\n"
        )
        measured = measure_transcript(path)
        assert measured.total_lines == 4
        assert measured.content_tokens == 10 + 2

    def test_tool_blocks_do_not_count(self, tmp_path):
        path = tmp_path / "t.jsonl"
        _write(path, [{
            "type": "user",
            "message": {
                "role": "user",
                "content": [{"type": "tool_result", "tool_use_id": "t", "content": "z" * 4000}],
            },
        }])
        measured = measure_transcript(path)
        assert measured.total_lines == 1
        assert measured.content_tokens == 0

    def test_content_tokens_monotonic_under_append(self, tmp_path):
        path = tmp_path / "t.jsonl"
        entries = []
        previous = 0
        for i in range(10):
            entries.append(_message("user" if i % 2 else "assistant", "word " * (i + 1)))
            _write(path, entries)
            current = measure_transcript(path).content_tokens
            assert current >= previous
            previous = current

    def test_undecodable_bytes_do_not_hide_the_transcript(self, tmp_path):
        path = tmp_path / "t.jsonl"
        good = json.dumps(_message("user", "x" * 40)).encode("utf-8")
        path.write_bytes(good + b"\n" + b"{\"partial\xff\n" + good + b"\n")
        measured = measure_transcript(path)
        assert measured.total_lines == 3
        assert measured.content_tokens == 20

        parsed = parse_transcript(path, start_line=1)
        assert parsed.total_lines == 3
        assert [e.text for e in parsed.entries] == ["x" * 40]


class TestParseTranscript:
    def test_returns_entries_after_start_line(self, tmp_path):
        path = tmp_path / "t.jsonl"
        _write(path, [
            _message("user", "first"),
            {"type": "progress"},
            _message("assistant", "second"),
            _message("user", "third"),
        ])
        parsed = parse_transcript(path, start_line=2)
        assert parsed.total_lines == 4
        assert [e.text for e in parsed.entries] == ["second", "third"]

    def test_start_zero_returns_everything(self, tmp_path):
        path = tmp_path / "t.jsonl"
        _write(path, [_message("user", "a"), _message("assistant", "b")])
        parsed = parse_transcript(path)
        assert [e.role for e in parsed.entries] == ["user", "assistant"]

    def test_missing_file(self, tmp_path):
        parsed = parse_transcript(tmp_path / "nope.jsonl", start_line=5)
        assert parsed.entries == []
        assert parsed.total_lines == 0


class TestUsage:
    def test_last_usage_wins(self, tmp_path):
        path = tmp_path / "t.jsonl"
        first = _message("assistant", "a")
        first["message"]["usage"] = {"input_tokens": 10}
        second = _message("assistant", "b")
        second["message"]["usage"] = {"input_tokens": 5, "cache_read_input_tokens": 100}
        _write(path, [first, _message("user", "c"), second, "garbage"])
        assert last_usage(path) == {"input_tokens": 5, "cache_read_input_tokens": 100}

    def test_no_usage(self, tmp_path):
        path = tmp_path / "t.jsonl"
        _write(path, [_message("user", "a")])
        assert last_usage(path) is None

    @pytest.mark.parametrize("usage,expected", [
        ({"input_tokens": 3, "cache_creation_input_tokens": 4, "cache_read_input_tokens": 5}, 12),
        ({"input_tokens": 3, "output_tokens": 1000}, 3),
        ({"input_tokens": "bad"}, 0),
    ])
    def test_context_tokens_used(self, usage, expected):
        assert context_tokens_used(usage) == expected
