from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .types import UNKNOWN_SESSION, EventLogEntry, make_preview

MEMORY_DIR_NAME = "memory"
MEMORY_FILE_SUFFIX = ".jsonl"


def memory_item_to_event(item: Any) -> EventLogEntry | None:
    """Project one memory item into a ``memory_write`` event.

    Items without a non-empty ``id``, ``createdAt`` and ``text`` are skipped.
    """

    if not isinstance(item, dict):
        return None
    item_id = item.get("id")
    created_at = item.get("createdAt")
    text = item.get("text")
    if not item_id or not isinstance(created_at, str) or not created_at:
        return None
    if not isinstance(text, str) or not text:
        return None
    source = item.get("source")
    if not isinstance(source, dict):
        source = {}
    tags = item.get("tags")
    kind = item.get("kind")
    sender = source.get("from")
    channel = source.get("channel")
    return EventLogEntry(
        ts=created_at,
        type="memory_write",
        session_id=str(source.get("conversationId") or UNKNOWN_SESSION),
        sender=str(sender) if sender is not None else None,
        channel=str(channel) if channel is not None else None,
        memory_id=str(item_id),
        memory_kind=str(kind) if kind is not None else None,
        tags=[tag for tag in tags if isinstance(tag, str)] if isinstance(tags, list) else None,
        preview=make_preview(text),
    )


def _read_memory_file(path: Path) -> list[EventLogEntry]:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []
    events: list[EventLogEntry] = []
    for line in raw.splitlines():
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError:
            continue
        if not isinstance(record, dict):
            continue
        event = memory_item_to_event(record.get("item"))
        if event is not None:
            events.append(event)
    return events


def read_memory_events(workspace: Path) -> list[EventLogEntry]:
    """Read every ``<workspace>/memory/*.jsonl`` file. Never cached, never raises."""

    memory_dir = workspace / MEMORY_DIR_NAME
    try:
        files = sorted(
            path
            for path in memory_dir.iterdir()
            if path.is_file() and path.name.endswith(MEMORY_FILE_SUFFIX)
        )
    except OSError:
        return []
    events: list[EventLogEntry] = []
    for path in files:
        events.extend(_read_memory_file(path))
    return events
