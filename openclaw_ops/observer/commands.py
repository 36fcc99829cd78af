"""Session observer slash-commands and the inbound-message hook.

Events land in ``<workspace>/observer/events.jsonl``; memory writes are read
from ``<workspace>/memory/*.jsonl`` on every query and merged in.
"""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ..host import CommandContext, CommandReply, CommandSpec, PluginHost
from . import aggregate, formatting
from .event_log import MAX_EVENTS, EventLog
from .memory_files import read_memory_events
from .types import UNKNOWN_SESSION, EventLogEntry, make_preview

logger = logging.getLogger(__name__)

MESSAGE_RECEIVED = "message_received"


def utc_now_iso() -> str:
    return dt.datetime.now(dt.UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def message_to_event(
    event: Mapping[str, Any], ctx: Mapping[str, Any]
) -> EventLogEntry | None:
    """Build a ``message`` event from a hook payload; blank content yields None."""

    content = str(event.get("content") or "").strip()
    if not content:
        return None
    session_id = ctx.get("sessionId") or ctx.get("conversationId") or UNKNOWN_SESSION
    channel = ctx.get("messageProvider") or ctx.get("channel")
    sender = event.get("from")
    return EventLogEntry(
        ts=utc_now_iso(),
        type="message",
        session_id=str(session_id),
        sender=str(sender) if sender is not None else None,
        channel=str(channel) if channel is not None else None,
        preview=make_preview(content),
    )


class SessionObserver:
    def __init__(self, workspace: Path, *, max_events: int = MAX_EVENTS) -> None:
        self.workspace = workspace
        self.log = EventLog.for_workspace(workspace, max_events=max_events)

    def all_events(self) -> list[EventLogEntry]:
        return [*self.log.read(), *read_memory_events(self.workspace)]

    def record_message(self, event: Mapping[str, Any], ctx: Mapping[str, Any]) -> bool:
        entry = message_to_event(event, ctx)
        if entry is None:
            return False
        self.log.append(entry)
        return True

    async def on_message_received(
        self, event: Mapping[str, Any], ctx: Mapping[str, Any]
    ) -> None:
        try:
            self.record_message(event or {}, ctx or {})
        except Exception as exc:  # the host must never see a hook failure
            logger.warning("observer message hook failed", exc_info=exc)

    async def sessions(self, ctx: CommandContext) -> CommandReply:
        limit = aggregate.parse_limit(
            ctx.args, aggregate.SESSIONS_DEFAULT_LIMIT, aggregate.SESSIONS_MAX_LIMIT
        )
        total, top = aggregate.recent_sessions(self.all_events(), limit)
        return {"text": formatting.render_sessions(total, top)}

    async def activity(self, ctx: CommandContext) -> CommandReply:
        session_filter, limit = aggregate.parse_activity_args(ctx.args)
        events = aggregate.filter_activity(self.all_events(), session_filter, limit)
        return {"text": formatting.render_activity(events, session_filter)}

    async def tail(self, ctx: CommandContext) -> CommandReply:
        limit = aggregate.parse_limit(
            ctx.args, aggregate.TAIL_DEFAULT_LIMIT, aggregate.TAIL_MAX_LIMIT
        )
        events = aggregate.tail_events(self.all_events(), limit)
        return {"text": formatting.render_tail(events)}

    async def stats(self, ctx: CommandContext) -> CommandReply:
        return {"text": formatting.render_stats(aggregate.compute_stats(self.all_events()))}

    async def clear(self, ctx: CommandContext) -> CommandReply:
        try:
            count = self.log.clear()
        except OSError as exc:
            logger.warning("observer log clear failed", exc_info=exc)
            return {"text": f"Failed to clear log: {exc}"}
        logger.info("observer log cleared (%d entries)", count)
        return {"text": f"Observer event log cleared. Removed {count} entries."}


def register_observer_commands(
    host: PluginHost, workspace: Path, *, max_events: int = MAX_EVENTS
) -> SessionObserver:
    observer = SessionObserver(workspace, max_events=max_events)
    host.on(MESSAGE_RECEIVED, observer.on_message_received)

    host.register_command(
        CommandSpec(
            name="sessions",
            description="List recent AI agent sessions with activity summary",
            usage="/sessions [limit]",
            accepts_args=True,
            handler=observer.sessions,
        )
    )
    host.register_command(
        CommandSpec(
            name="activity",
            description=(
                "Show recent agent activity (all or by session). "
                "Usage: /activity [sessionId] [limit]"
            ),
            usage="/activity [sessionId|limit] [limit]",
            accepts_args=True,
            handler=observer.activity,
        )
    )
    host.register_command(
        CommandSpec(
            name="session-tail",
            description="Tail the most recent agent events across all sessions",
            usage="/session-tail [limit]",
            accepts_args=True,
            handler=observer.tail,
        )
    )
    host.register_command(
        CommandSpec(
            name="session-stats",
            description="Aggregate statistics for all observed agent sessions",
            usage="/session-stats",
            handler=observer.stats,
        )
    )
    host.register_command(
        CommandSpec(
            name="session-clear",
            description="Clear the observer event log (destructive)",
            usage="/session-clear",
            require_auth=True,
            handler=observer.clear,
        )
    )

    host.logger.info("[observer] enabled. log=%s", observer.log.path)
    return observer
