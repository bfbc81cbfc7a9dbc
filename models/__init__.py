"""
Data models for conversations and settings.
"""
from .message import Role, Turn, ConversationStore, ChatSettings

__all__ = [
    "Role",
    "Turn",
    "ConversationStore",
    "ChatSettings",
]
