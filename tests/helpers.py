from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any


def write_jsonl(path: Path, records: Iterable[Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [record if isinstance(record, str) else json.dumps(record) for record in records]
    path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
    return path


def write_events(workspace: Path, events: Iterable[Any]) -> Path:
    return write_jsonl(workspace / "observer" / "events.jsonl", events)


def write_memory(
    workspace: Path, items: Iterable[dict[str, Any]], name: str = "brain.jsonl"
) -> Path:
    return write_jsonl(workspace / "memory" / name, ({"item": item} for item in items))
