"""
Data models for conversation turns and chat settings.

Gemini's generateContent endpoint is stateless: every request replays the
whole transcript. The transcript lives in a ConversationStore owned by one
session; it is never shared between sessions.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import constants as C


class Role(Enum):
    """Role of the turn's author."""
    USER = "user"
    ASSISTANT = "assistant"

    @property
    def wire_role(self) -> str:
        """Role label expected by the Gemini API."""
        if self is Role.ASSISTANT:
            return C.WIRE_ROLE_MODEL
        return C.WIRE_ROLE_USER


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Turn:
    """A single role-tagged message in the conversation."""
    role: Role
    content: str
    model: str
    timestamp: datetime = field(default_factory=_utcnow)
    tokens: int = 0  # Approximate token count

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "model": self.model,
            "tokens": self.tokens,
        }

    def __str__(self) -> str:
        preview = self.content if len(self.content) <= 50 else f"{self.content[:50]}..."
        return f"{self.role.value}: {preview}"


class ConversationStore:
    """Ordered, append-only log of turns."""

    def __init__(self):
        self._turns: list[Turn] = []

    def append(self, turn: Turn) -> None:
        """Add a turn to the end of the conversation."""
        if turn is None:
            raise ValueError("Cannot append an empty turn")
        self._turns.append(turn)

    def all(self) -> tuple[Turn, ...]:
        """Snapshot of every turn in insertion order."""
        return tuple(self._turns)

    def clear(self) -> None:
        """Drop every turn at once."""
        self._turns = []

    def last(self) -> Optional[Turn]:
        """Get the most recent turn."""
        return self._turns[-1] if self._turns else None

    def __len__(self) -> int:
        return len(self._turns)


@dataclass
class ChatSettings:
    """User settings for the chat session."""
    api_key: Optional[str] = None
    model: str = C.DEFAULT_MODEL
    temperature: float = C.DEFAULT_TEMPERATURE
    max_output_tokens: int = C.DEFAULT_MAX_OUTPUT_TOKENS
    stream_interval_ms: int = C.STREAM_INTERVAL_MS
    words_per_chunk: int = C.STREAM_WORDS_PER_CHUNK

    def generation_config(self) -> dict:
        """Convert to the API's generationConfig block."""
        return {
            "temperature": self.temperature,
            "maxOutputTokens": self.max_output_tokens,
        }
