"""Approximate token counting for Gemini conversation turns."""
from __future__ import annotations

import asyncio
import logging
from threading import Lock

import tiktoken

import constants as C

logger = logging.getLogger(__name__)

# Gemini tokenizers are not public; cl100k_base is close enough for context estimates.
ENCODING_NAME = "cl100k_base"


class TokenCounter:
    """Lazily loaded tokenizer with a character-based fallback."""

    def __init__(self, encoding_name: str = ENCODING_NAME):
        self._lock = Lock()
        self._encoding_name = encoding_name
        self._encoding = None
        self._load_failed = False

    @property
    def loaded(self) -> bool:
        """True once loading has finished, successfully or not."""
        return self._encoding is not None or self._load_failed

    def _load_encoding(self):
        return tiktoken.get_encoding(self._encoding_name)

    def _get_encoding(self, load: bool = True):
        if self.loaded or not load:
            return self._encoding
        with self._lock:
            if self.loaded:
                return self._encoding
            try:
                self._encoding = self._load_encoding()
            except Exception as e:
                # Encoding files are downloaded on first use and may be unreachable.
                logger.warning("Could not load %s encoding, using rough estimates: %s", self._encoding_name, e)
                self._load_failed = True
            return self._encoding

    def preload(self) -> None:
        """Load the encoding now. Blocks; run it in an executor from async code."""
        self._get_encoding()

    def count_text(self, text: str, load: bool = True) -> int:
        """Count tokens in plain text.

        With load=False an encoding that is not loaded yet is not fetched
        and the character estimate is used instead.
        """
        text = text or ""
        if not text:
            return 0
        enc = self._get_encoding(load)
        if enc is None:
            return max(1, len(text) // C.CHARS_PER_TOKEN_EST)
        return len(enc.encode(text))


_counter = TokenCounter()


def count_text_tokens(text: str, load: bool = True) -> int:
    """Module-level convenience wrapper for tokenizer counting."""
    return _counter.count_text(text, load=load)


async def preload_encoding() -> None:
    """Load the shared encoding in the default executor."""
    counter = _counter
    if counter.loaded:
        return
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, counter.preload)
