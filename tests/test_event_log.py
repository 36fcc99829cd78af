import json
from pathlib import Path

import pytest
from helpers import write_events

from openclaw_ops.observer import EventLog, EventLogEntry, make_preview, open_event_log


def _entry(ts: str, session_id: str = "s1", **kwargs: object) -> EventLogEntry:
    return EventLogEntry(ts=ts, type="message", session_id=session_id, **kwargs)  # type: ignore[arg-type]


def test_open_event_log_creates_empty_file_and_is_idempotent(tmp_path: Path) -> None:
    observer_dir = tmp_path / "observer"
    log_path = open_event_log(observer_dir)
    assert log_path == observer_dir / "events.jsonl"
    assert log_path.read_text() == ""

    log_path.write_text('{"ts": "2026-02-27T10:00:00Z", "type": "message"}\n')
    assert open_event_log(observer_dir) == log_path
    assert log_path.read_text() != ""


def test_read_skips_malformed_lines_and_keeps_order(workspace: Path) -> None:
    write_events(
        workspace,
        [
            {"ts": "2026-02-27T10:00:00Z", "type": "message", "sessionId": "a"},
            "{not json",
            {"ts": "2026-02-27T10:01:00Z", "type": "tool_call", "sessionId": "b", "tool": "x"},
            "",
            "[1, 2, 3]",
            {"ts": "2026-02-27T10:02:00Z", "type": "command", "sessionId": "c"},
        ],
    )
    entries = EventLog.for_workspace(workspace).read()
    assert [e.session_id for e in entries] == ["a", "b", "c"]


def test_read_rejects_unknown_types_and_missing_timestamps(workspace: Path) -> None:
    write_events(
        workspace,
        [
            {"ts": "2026-02-27T10:00:00Z", "type": "heartbeat", "sessionId": "a"},
            {"type": "message", "sessionId": "b"},
            {"ts": "", "type": "message"},
            {"ts": "2026-02-27T10:00:00Z", "type": "message"},
        ],
    )
    entries = EventLog.for_workspace(workspace).read()
    assert len(entries) == 1
    assert entries[0].session_id == "unknown"


def test_read_missing_file_returns_empty(tmp_path: Path) -> None:
    assert EventLog(tmp_path / "nope" / "events.jsonl").read() == []


def test_append_round_trip_preserves_all_fields(workspace: Path) -> None:
    log = EventLog.for_workspace(workspace)
    entry = EventLogEntry(
        ts="2026-02-27T10:00:00.000Z",
        type="memory_write",
        session_id="sess-1",
        sender="alice",
        channel="telegram",
        preview="remember this",
        memory_kind="note",
        memory_id="m-1",
        tags=["brain", "todo"],
    )
    log.append(entry)
    assert log.read() == [entry]

    raw = json.loads(log.path.read_text().strip())
    assert raw["sessionId"] == "sess-1"
    assert raw["from"] == "alice"
    assert raw["memoryKind"] == "note"
    assert "tool" not in raw


def test_append_rotates_at_cap(workspace: Path) -> None:
    log = EventLog.for_workspace(workspace, max_events=5)
    for i in range(8):
        log.append(_entry(f"2026-02-27T10:0{i}:00Z", preview=f"event {i}"))
        assert len(log.read()) <= 5

    previews = [e.preview for e in log.read()]
    assert previews == ["event 3", "event 4", "event 5", "event 6", "event 7"]


def test_append_swallows_write_errors(tmp_path: Path) -> None:
    log_dir = tmp_path / "observer"
    log = EventLog(log_dir / "events.jsonl")
    # Parent directory does not exist, so the append cannot open the file.
    log.append(_entry("2026-02-27T10:00:00Z"))
    assert log.read() == []


def test_clear_reports_count_and_is_idempotent(workspace: Path) -> None:
    log = EventLog.for_workspace(workspace)
    log.append(_entry("2026-02-27T10:00:00Z"))
    log.append(_entry("2026-02-27T10:01:00Z"))

    assert log.clear() == 2
    assert log.read() == []
    assert log.path.read_text() == ""
    assert log.clear() == 0


def test_clear_raises_when_log_cannot_be_written(tmp_path: Path) -> None:
    log = EventLog(tmp_path / "missing-dir" / "events.jsonl")
    with pytest.raises(OSError):
        log.clear()


def test_event_log_rejects_non_positive_cap(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        EventLog(tmp_path / "events.jsonl", max_events=0)


def test_make_preview_truncates_long_text() -> None:
    text = "x" * 50 + "y" * 100
    preview = make_preview(text)
    assert len(preview) == 81
    assert preview == text[:80] + "…"
    assert make_preview("short") == "short"
    assert make_preview("z" * 80) == "z" * 80
