from .commands import SessionObserver, message_to_event, register_observer_commands
from .event_log import MAX_EVENTS, EventLog, open_event_log
from .memory_files import read_memory_events
from .types import EventLogEntry, SessionStats, SessionSummary, make_preview

__all__ = [
    "MAX_EVENTS",
    "EventLog",
    "EventLogEntry",
    "SessionObserver",
    "SessionStats",
    "SessionSummary",
    "make_preview",
    "message_to_event",
    "open_event_log",
    "read_memory_events",
    "register_observer_commands",
]
