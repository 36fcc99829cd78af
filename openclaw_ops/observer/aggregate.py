from __future__ import annotations

import datetime as dt
import re
from collections import Counter
from collections.abc import Iterable, Sequence

from .types import UNKNOWN_SESSION, EventLogEntry, SessionStats, SessionSummary

SESSIONS_DEFAULT_LIMIT = 10
SESSIONS_MAX_LIMIT = 50
ACTIVITY_DEFAULT_LIMIT = 20
ACTIVITY_MAX_LIMIT = 100
TAIL_DEFAULT_LIMIT = 30
TAIL_MAX_LIMIT = 100

TOP_CHANNELS = 3
TOP_TOOLS = 5
TOP_SESSIONS = 5

OLDEST_TS = dt.datetime.min.replace(tzinfo=dt.UTC)

_INT_PREFIX_RE = re.compile(r"^\s*([+-]?[0-9]+)")


def parse_ts(value: str) -> dt.datetime:
    """Parse an ISO-8601 timestamp; unparseable values sort as the oldest."""

    try:
        parsed = dt.datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return OLDEST_TS
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.UTC)
    return parsed


def merge_events(
    *sources: Iterable[EventLogEntry], newest_first: bool = False
) -> list[EventLogEntry]:
    merged = [event for source in sources for event in source]
    merged.sort(key=lambda event: parse_ts(event.ts), reverse=newest_first)
    return merged


def parse_int_prefix(token: str | None) -> int | None:
    """Read the leading integer of ``token`` (``"12abc"`` -> 12), or None."""

    match = _INT_PREFIX_RE.match(token or "")
    if match is None:
        return None
    return int(match.group(1))


def parse_limit(raw: str | None, default: int, maximum: int) -> int:
    value = parse_int_prefix(raw)
    if not value:
        return default
    return min(maximum, max(1, value))


def parse_activity_args(raw: str | None) -> tuple[str | None, int]:
    """Split ``activity`` arguments into ``(session_filter, limit)``.

    A lone token with a positive leading integer is a limit, anything else is
    a session filter, so a session id starting with digits can only be
    filtered with an explicit limit after it.
    """

    parts = (raw or "").split()
    limit = ACTIVITY_DEFAULT_LIMIT
    if not parts:
        return None, limit
    if len(parts) == 1:
        value = parse_int_prefix(parts[0])
        if value is not None and value > 0:
            return None, min(ACTIVITY_MAX_LIMIT, value)
        return parts[0], limit
    value = parse_int_prefix(parts[1])
    if value is not None and value > 0:
        limit = min(ACTIVITY_MAX_LIMIT, value)
    return parts[0], limit


def summarize_sessions(events: Iterable[EventLogEntry]) -> dict[str, SessionSummary]:
    sessions: dict[str, SessionSummary] = {}
    for event in events:
        sid = event.session_id or UNKNOWN_SESSION
        summary = sessions.get(sid)
        if summary is None:
            summary = SessionSummary(session_id=sid, first_seen=event.ts, last_seen=event.ts)
            sessions[sid] = summary
        when = parse_ts(event.ts)
        if when > parse_ts(summary.last_seen):
            summary.last_seen = event.ts
        if when < parse_ts(summary.first_seen):
            summary.first_seen = event.ts
        if event.type == "message":
            summary.messages += 1
        elif event.type == "memory_write":
            summary.memory_writes += 1
        elif event.type == "tool_call":
            summary.tool_calls += 1
        elif event.type == "command":
            summary.commands += 1
        if event.channel and event.channel not in summary.channels:
            summary.channels.append(event.channel)
    return sessions


def recent_sessions(
    events: Sequence[EventLogEntry], limit: int = SESSIONS_DEFAULT_LIMIT
) -> tuple[int, list[SessionSummary]]:
    """Return the session count and the ``limit`` most recently active sessions."""

    sessions = summarize_sessions(merge_events(events))
    ordered = sorted(sessions.values(), key=lambda s: parse_ts(s.last_seen), reverse=True)
    return len(sessions), ordered[:limit]


def filter_activity(
    events: Sequence[EventLogEntry],
    session_filter: str | None = None,
    limit: int = ACTIVITY_DEFAULT_LIMIT,
) -> list[EventLogEntry]:
    ordered = merge_events(events, newest_first=True)
    if session_filter:
        ordered = [event for event in ordered if session_filter in event.session_id]
    return ordered[:limit]


def tail_events(
    events: Sequence[EventLogEntry], limit: int = TAIL_DEFAULT_LIMIT
) -> list[EventLogEntry]:
    newest = merge_events(events, newest_first=True)[:limit]
    newest.reverse()
    return newest


def compute_stats(events: Sequence[EventLogEntry]) -> SessionStats | None:
    if not events:
        return None
    ordered = merge_events(events)
    sessions = summarize_sessions(ordered)
    channel_counts: Counter[str] = Counter()
    tool_counts: Counter[str] = Counter()
    tag_counts: Counter[str] = Counter()
    type_counts: Counter[str] = Counter()
    for event in ordered:
        type_counts[event.type] += 1
        if event.channel:
            channel_counts[event.channel] += 1
        if event.type == "tool_call" and event.tool:
            tool_counts[event.tool] += 1
        for tag in event.tags or []:
            tag_counts[tag] += 1
    top_sessions = sorted(sessions.values(), key=lambda s: s.activity, reverse=True)
    return SessionStats(
        sessions=sessions,
        total_events=len(ordered),
        totals_by_type=dict(type_counts),
        top_channels=channel_counts.most_common(TOP_CHANNELS),
        top_tools=tool_counts.most_common(TOP_TOOLS),
        tags=tag_counts.most_common(),
        top_sessions=top_sessions[:TOP_SESSIONS],
    )
