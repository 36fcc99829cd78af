from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Final, Literal, get_args

EventType = Literal["message", "tool_call", "command", "memory_write"]

EVENT_TYPES: Final[tuple[str, ...]] = get_args(EventType)
UNKNOWN_SESSION: Final = "unknown"
PREVIEW_CHARS: Final = 80
ELLIPSIS: Final = "…"


def make_preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _opt_tags(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [tag for tag in value if isinstance(tag, str)]


@dataclass
class EventLogEntry:
    ts: str
    type: EventType
    session_id: str = UNKNOWN_SESSION
    sender: str | None = None
    channel: str | None = None
    tool: str | None = None
    command: str | None = None
    preview: str | None = None
    memory_kind: str | None = None
    memory_id: str | None = None
    tags: list[str] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"ts": self.ts, "type": self.type, "sessionId": self.session_id}
        optional = {
            "from": self.sender,
            "channel": self.channel,
            "tool": self.tool,
            "command": self.command,
            "preview": self.preview,
            "memoryKind": self.memory_kind,
            "memoryId": self.memory_id,
            "tags": self.tags,
        }
        for key, value in optional.items():
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> EventLogEntry | None:
        """Validate one decoded log record; anything unrecognized yields None."""

        if not isinstance(data, dict):
            return None
        ts = data.get("ts")
        event_type = data.get("type")
        if not isinstance(ts, str) or not ts:
            return None
        if event_type not in EVENT_TYPES:
            return None
        return cls(
            ts=ts,
            type=event_type,
            session_id=str(data.get("sessionId") or UNKNOWN_SESSION),
            sender=_opt_str(data.get("from")),
            channel=_opt_str(data.get("channel")),
            tool=_opt_str(data.get("tool")),
            command=_opt_str(data.get("command")),
            preview=_opt_str(data.get("preview")),
            memory_kind=_opt_str(data.get("memoryKind")),
            memory_id=_opt_str(data.get("memoryId")),
            tags=_opt_tags(data.get("tags")),
        )


@dataclass
class SessionSummary:
    session_id: str
    first_seen: str
    last_seen: str
    messages: int = 0
    memory_writes: int = 0
    tool_calls: int = 0
    commands: int = 0
    channels: list[str] = field(default_factory=list)

    @property
    def activity(self) -> int:
        return self.messages + self.memory_writes


@dataclass
class SessionStats:
    sessions: dict[str, SessionSummary]
    total_events: int
    totals_by_type: dict[str, int]
    top_channels: list[tuple[str, int]]
    top_tools: list[tuple[str, int]]
    tags: list[tuple[str, int]]
    top_sessions: list[SessionSummary]
