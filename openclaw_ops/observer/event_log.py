"""Append-only JSONL event log with a soft entry cap.

The log is best-effort: reads never fail, appends swallow I/O errors, and
rotation is a read-rewrite-append sequence that assumes a single writer.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .types import EventLogEntry

logger = logging.getLogger(__name__)

MAX_EVENTS = 5000
EVENT_LOG_NAME = "events.jsonl"


def open_event_log(observer_dir: Path) -> Path:
    observer_dir.mkdir(parents=True, exist_ok=True)
    log_path = observer_dir / EVENT_LOG_NAME
    if not log_path.exists():
        log_path.write_text("", encoding="utf-8")
    return log_path


def parse_event_lines(raw: str) -> list[EventLogEntry]:
    entries: list[EventLogEntry] = []
    for line in raw.splitlines():
        if not line.strip():
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            continue
        entry = EventLogEntry.from_dict(data)
        if entry is not None:
            entries.append(entry)
    return entries


def _serialize(entry: EventLogEntry) -> str:
    return json.dumps(entry.to_dict(), ensure_ascii=False) + "\n"


class EventLog:
    def __init__(self, path: Path, *, max_events: int = MAX_EVENTS) -> None:
        if max_events < 1:
            raise ValueError("max_events must be at least 1")
        self.path = path
        self.max_events = max_events

    @classmethod
    def for_workspace(cls, workspace: Path, *, max_events: int = MAX_EVENTS) -> EventLog:
        return cls(open_event_log(workspace / "observer"), max_events=max_events)

    def read(self) -> list[EventLogEntry]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return []
        return parse_event_lines(raw)

    def append(self, entry: EventLogEntry) -> None:
        try:
            existing = self.read()
            if len(existing) >= self.max_events:
                keep = existing[len(existing) - self.max_events + 1 :]
                self.path.write_text("".join(_serialize(e) for e in keep), encoding="utf-8")
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(_serialize(entry))
        except OSError as exc:
            logger.warning("observer event append failed", exc_info=exc)

    def clear(self) -> int:
        """Truncate the log and return how many entries it held.

        Unlike ``append`` this lets ``OSError`` through; callers report it.
        """

        count = len(self.read())
        self.path.write_text("", encoding="utf-8")
        return count
