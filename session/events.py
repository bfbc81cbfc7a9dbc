"""Events reported by a chat session to its UI."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable


class EventType(str, Enum):
    USER_MESSAGE = "user-message"
    TYPING_STARTED = "typing-started"
    STREAM_STARTED = "stream-started"
    STREAM_CHUNK = "stream-chunk"
    STREAM_ENDED = "stream-ended"
    ERROR = "error"
    CLEARED = "cleared"
    CREDENTIAL_STATUS = "credential-status"


@dataclass(frozen=True)
class SessionEvent:
    type: EventType
    data: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Flatten to a message dict, e.g. {"type": "stream-chunk", "text": "Hi "}."""
        return {"type": self.type.value, **self.data}


EventSink = Callable[[SessionEvent], None]
