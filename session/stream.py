"""
Simulated streaming of an already complete reply.

The generateContent endpoint returns the whole answer at once. To keep the
chat feeling live, the reply is handed to the UI a couple of words at a
time on a fixed timer.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import constants as C
from .timers import schedule as schedule_repeating

logger = logging.getLogger(__name__)

# A word plus the whitespace that follows it; punctuation stays on its word.
_WORD_RE = re.compile(r"\S+\s*")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


ScheduleFn = Callable[[int, Callable[[], bool]], TimerHandle]


def tokenize_words(text: str) -> list[str]:
    """Split text into word tokens, keeping each word's trailing separator."""
    return _WORD_RE.findall(text or "")


@dataclass
class StreamCursor:
    """Progress of one simulated stream."""
    words: list[str]
    index: int = 0
    active: bool = True

    @property
    def finished(self) -> bool:
        return self.index >= len(self.words)


class StreamScheduler:
    """Emits a complete text as paced chunks, one stream at a time."""

    def __init__(
        self,
        interval_ms: int = C.STREAM_INTERVAL_MS,
        words_per_chunk: int = C.STREAM_WORDS_PER_CHUNK,
        schedule: ScheduleFn = schedule_repeating,
    ):
        self.interval_ms = interval_ms
        self.words_per_chunk = max(1, int(words_per_chunk))
        self._schedule = schedule
        self._cursor: Optional[StreamCursor] = None
        self._timer: Optional[TimerHandle] = None

    @property
    def active(self) -> bool:
        return self._cursor is not None and self._cursor.active

    def start(
        self,
        full_text: str,
        on_chunk: Callable[[str], None],
        on_done: Callable[[], None],
    ) -> None:
        """Begin streaming `full_text`, cancelling any stream already running.

        Args:
            full_text: The complete reply.
            on_chunk: Called with each chunk of text.
            on_done: Called once after the last chunk. Not called if stopped.
        """
        self.stop()

        words = tokenize_words(full_text)
        if not words:
            on_done()
            return

        cursor = StreamCursor(words=words)
        self._cursor = cursor
        logger.debug("Streaming %d words in chunks of %d", len(words), self.words_per_chunk)

        def _tick() -> bool:
            # A stopped cursor must never emit, even if its timer fires late.
            if not cursor.active:
                return False
            end = min(cursor.index + self.words_per_chunk, len(cursor.words))
            chunk = "".join(cursor.words[cursor.index:end])
            cursor.index = end
            if cursor.finished:
                chunk = chunk.rstrip()
            on_chunk(chunk)
            if not cursor.active:
                return False
            if not cursor.finished:
                return True
            cursor.active = False
            if self._cursor is cursor:
                self._cursor = None
                self._timer = None
            on_done()
            return False

        self._timer = self._schedule(self.interval_ms, _tick)

    def stop(self) -> None:
        """Halt the current stream without calling its on_done."""
        if self._cursor is not None:
            self._cursor.active = False
            logger.debug("Stopped stream at word %d of %d", self._cursor.index, len(self._cursor.words))
        if self._timer is not None:
            self._timer.cancel()
        self._cursor = None
        self._timer = None
