"""Request payload construction for the generateContent endpoint."""
from typing import Iterable

from models import Turn, ChatSettings
import constants as C


def _content_block(role: str, text: str) -> dict:
    return {"role": role, "parts": [{"text": text}]}


def build_contents(history: Iterable[Turn], pending_text: str) -> list[dict]:
    """Convert prior turns plus the pending user message to API contents.

    The pending message has not been stored yet when the request is built,
    so it is always appended as the final entry.
    """
    contents = [_content_block(turn.role.wire_role, turn.content) for turn in history]
    contents.append(_content_block(C.WIRE_ROLE_USER, pending_text))
    return contents


def build_request(history: Iterable[Turn], pending_text: str, settings: ChatSettings) -> dict:
    """Build the full request body for a new user message."""
    return {
        "contents": build_contents(history, pending_text),
        "generationConfig": settings.generation_config(),
    }
