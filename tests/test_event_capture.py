"""Tests for tool event classification and the capped event log."""

import json

import pytest

from obsmem.event_capture import (
    EventLog,
    ToolEvent,
    ToolKind,
    capture,
    response_text,
    summarize,
)
from obsmem.storage import ProjectPaths


@pytest.fixture
def paths(tmp_path):
    return ProjectPaths.for_cwd(tmp_path)


class TestClassify:
    @pytest.mark.parametrize("name,kind", [
        ("Write", ToolKind.WRITE),
        ("Edit", ToolKind.EDIT),
        ("MultiEdit", ToolKind.MULTI_EDIT),
        ("TaskCreate", ToolKind.TASK_CREATE),
        ("TaskUpdate", ToolKind.TASK_UPDATE),
        ("Bash", ToolKind.BASH),
        ("Read", ToolKind.OTHER),
        ("other", ToolKind.OTHER),
        ("", ToolKind.OTHER),
    ])
    def test_classify(self, name, kind):
        assert ToolKind.classify(name) is kind


class TestSignificance:
    def test_write_always_captured(self, paths):
        event = capture(paths, "Write", {"file_path": "/src/app/main.py"}, "ok", "tu-1")
        assert event.summary == "Wrote file: main.py"
        assert event.id == "tu-1"

    def test_read_never_captured(self, paths):
        assert capture(paths, "Read", {"file_path": "/x"}, "error everywhere") is None
        assert not paths.tool_events.exists()

    def test_bash_keyword_command(self, paths):
        event = capture(paths, "Bash", {"command": "pytest -q tests"}, {"stdout": "3 passed"})
        assert event.summary == "Ran: pytest -q tests"

    def test_bash_failure_output(self, paths):
        event = capture(
            paths, "Bash", {"command": "ls /nope"},
            {"stdout": "", "stderr": "ls: cannot access: No such file (error)"},
        )
        assert event.summary == "[FAILED] Ran: ls /nope"

    def test_bash_quiet_command_skipped(self, paths):
        assert capture(paths, "Bash", {"command": "ls"}, {"stdout": "a\nb"}) is None

    def test_missing_input(self, paths):
        event = capture(paths, "Edit", None)
        assert event.summary == "Edited file: unknown"


class TestSummarize:
    def test_long_command_truncated(self):
        command = "npm run " + "x" * 100
        summary = summarize(ToolKind.BASH, "Bash", {"command": command}, "")
        assert summary == "Ran: " + command[:80] + "..."

    def test_windows_path(self):
        summary = summarize(ToolKind.EDIT, "Edit", {"file_path": "C:\\proj\\src\\a.ts"}, "")
        assert summary == "Edited file: a.ts"

    def test_task_subject_then_id(self):
        assert summarize(ToolKind.TASK_CREATE, "TaskCreate", {"subject": "Auth"}, "") == "TaskCreate: Auth"
        assert summarize(ToolKind.TASK_UPDATE, "TaskUpdate", {"taskId": "7"}, "") == "TaskUpdate: 7"


class TestResponseText:
    def test_shapes(self):
        assert response_text(None) == ""
        assert response_text("plain") == "plain"
        assert response_text({"stdout": "out", "stderr": "err"}) == "out\nerr"
        assert response_text({"file": {"content": "body"}}) == "body"
        assert response_text([{"text": "a"}, "b"]) == "a\nb"
        assert json.loads(response_text({"filePath": "/x"})) == {"filePath": "/x"}


class TestEventLog:
    def test_cap_evicts_oldest(self, paths):
        log = EventLog(paths)
        seed = [ToolEvent(tool="Write", summary=f"event {i}").to_dict() for i in range(100)]
        paths.claude_dir.mkdir()
        paths.tool_events.write_text(json.dumps(seed))

        events = log.append(ToolEvent(tool="Edit", summary="newest"))
        assert len(events) == 100
        assert events[0].summary == "event 1"
        assert events[-1].summary == "newest"
        assert len(json.loads(paths.tool_events.read_text())) == 100

    def test_small_cap(self, paths):
        log = EventLog(paths, max_events=3)
        for i in range(5):
            log.append(ToolEvent(tool="Write", summary=str(i)))
        assert [e.summary for e in log.read()] == ["2", "3", "4"]

    def test_corrupt_log_restarts(self, paths):
        paths.claude_dir.mkdir()
        paths.tool_events.write_text('{"not": "a list"}')
        events = EventLog(paths).append(ToolEvent(tool="Write", summary="x"))
        assert [e.summary for e in events] == ["x"]

    def test_recent(self, paths):
        log = EventLog(paths)
        for i in range(5):
            log.append(ToolEvent(tool="Write", summary=str(i)))
        assert [e.summary for e in log.recent(2)] == ["3", "4"]
        assert log.recent(0) == []
