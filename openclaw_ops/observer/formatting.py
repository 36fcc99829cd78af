from __future__ import annotations

from collections.abc import Sequence

from .aggregate import OLDEST_TS, parse_ts
from .types import UNKNOWN_SESSION, EventLogEntry, SessionStats, SessionSummary

TYPE_ICONS = {
    "message": "💬",
    "tool_call": "🔧",
    "command": "⌨️",
    "memory_write": "🧠",
}

NO_SESSIONS_TEXT = "No sessions observed yet."
NO_ACTIVITY_TEXT = "No activity recorded yet."
NO_SESSION_ACTIVITY_TEXT = "No activity found for that session."
NO_EVENTS_TEXT = "No events recorded yet."
NO_STATS_TEXT = "No data yet. Stats populate as sessions run."


def fmt_ts(value: str) -> str:
    """Compact local ``MM-DD HH:MM``; falls back to the raw prefix."""

    parsed = parse_ts(value)
    if parsed == OLDEST_TS:
        return value[:16]
    try:
        local = parsed.astimezone()
    except (OverflowError, ValueError):
        # Shifting a timestamp at the edge of the datetime range overflows.
        return value[:16]
    return local.strftime("%m-%d %H:%M")


def fmt_session(session_id: str | None) -> str:
    if not session_id or session_id == UNKNOWN_SESSION:
        return "(no session)"
    if len(session_id) > 16:
        return f"{session_id[:8]}…{session_id[-6:]}"
    return session_id


def _icon(event: EventLogEntry) -> str:
    return TYPE_ICONS.get(event.type, "•")


def render_sessions(total: int, sessions: Sequence[SessionSummary]) -> str:
    lines = [f"Sessions ({total} total, showing {len(sessions)})", ""]
    if not sessions:
        lines.append(NO_SESSIONS_TEXT)
        lines.append("Memory items will appear here once brain/docs plugins write entries.")
        lines.append("Inbound messages will appear once message_received events fire.")
        return "\n".join(lines)
    for summary in sessions:
        lines.append(f"Session: {fmt_session(summary.session_id)}")
        lines.append(f"  Last seen:  {fmt_ts(summary.last_seen)}")
        lines.append(f"  First seen: {fmt_ts(summary.first_seen)}")
        lines.append(f"  💬 Messages:      {summary.messages}")
        lines.append(f"  🧠 Memory writes: {summary.memory_writes}")
        lines.append(f"  🔧 Tool calls:    {summary.tool_calls}")
        lines.append(f"  ⌨️ Commands:      {summary.commands}")
        lines.append(f"  Channel: {', '.join(summary.channels) or '-'}")
        lines.append("")
    return "\n".join(lines).strip()


def _detail(event: EventLogEntry) -> str:
    if event.type == "tool_call" and event.tool:
        return f"[{event.tool}] "
    if event.type == "command" and event.command:
        return f"[/{event.command}] "
    if event.type == "memory_write" and event.memory_kind:
        return f"[{event.memory_kind}] "
    return ""


def render_activity(events: Sequence[EventLogEntry], session_filter: str | None) -> str:
    if session_filter:
        header = f"Activity for session: {fmt_session(session_filter)} (last {len(events)})"
    else:
        header = f"Activity: all sessions (last {len(events)})"
    lines = [header, ""]
    if not events:
        lines.append(NO_SESSION_ACTIVITY_TEXT if session_filter else NO_ACTIVITY_TEXT)
        return "\n".join(lines)
    for event in events:
        tags = f" ({','.join(event.tags)})" if event.tags else ""
        lines.append(f"{_icon(event)} {fmt_ts(event.ts)}  {fmt_session(event.session_id)}{tags}")
        if event.preview:
            lines.append(f"   {_detail(event)}{event.preview}")
        lines.append("")
    return "\n".join(lines).strip()


def render_tail(events: Sequence[EventLogEntry]) -> str:
    lines = [f"Session tail (last {len(events)} events)", ""]
    if not events:
        lines.append(NO_EVENTS_TEXT)
        return "\n".join(lines)
    for event in events:
        if event.memory_kind:
            badge = f"[{event.memory_kind}] "
        elif event.tool:
            badge = f"[{event.tool}] "
        else:
            badge = ""
        lines.append(
            f"{_icon(event)} {fmt_ts(event.ts)} {fmt_session(event.session_id)}  "
            f"{badge}{event.preview or ''}"
        )
    return "\n".join(lines)


def render_stats(stats: SessionStats | None) -> str:
    if stats is None:
        return f"Session stats\n\n{NO_STATS_TEXT}"
    totals = stats.totals_by_type
    lines = ["Session stats", "", "OVERVIEW"]
    lines.append(f"- Total sessions:     {len(stats.sessions)}")
    lines.append(f"- Total events:       {stats.total_events}")
    lines.append(f"- Messages received:  {totals.get('message', 0)}")
    lines.append(f"- Memory writes:      {totals.get('memory_write', 0)}")
    lines.append(f"- Tool calls:         {totals.get('tool_call', 0)}")
    lines.append(f"- Commands:           {totals.get('command', 0)}")

    if stats.top_channels:
        lines += ["", "TOP CHANNELS"]
        lines += [f"- {channel}: {count}" for channel, count in stats.top_channels]
    if stats.top_tools:
        lines += ["", "TOP TOOLS"]
        lines += [f"- {tool}: {count}x" for tool, count in stats.top_tools]
    if stats.tags:
        lines += ["", "MEMORY TAGS"]
        lines += [f"- {tag}: {count}" for tag, count in stats.tags]

    lines += ["", "MOST ACTIVE SESSIONS"]
    for summary in stats.top_sessions:
        total = summary.messages + summary.memory_writes + summary.tool_calls
        lines.append(f"- {fmt_session(summary.session_id)}")
        lines.append(
            f"  💬 {summary.messages} msg  🧠 {summary.memory_writes} mem  "
            f"🔧 {summary.tool_calls} tools  ({total} total)"
        )
        lines.append(f"  Last: {fmt_ts(summary.last_seen)}")
    return "\n".join(lines)
