"""
Chat session engine: conversation state, simulated streaming, UI events.
"""
from .events import EventType, SessionEvent, EventSink
from .stream import StreamScheduler, StreamCursor, tokenize_words
from .timers import RepeatingTask, schedule
from .controller import SessionController, SessionState

__all__ = [
    "EventType",
    "SessionEvent",
    "EventSink",
    "StreamScheduler",
    "StreamCursor",
    "tokenize_words",
    "RepeatingTask",
    "schedule",
    "SessionController",
    "SessionState",
]
