"""Core data models for Chat Core."""

from .chats import Chat, CreateChatPayload
from .messages import Message, MessageType
from .users import User

__all__ = [
    # Users
    "User",
    # Messages
    "Message",
    "MessageType",
    # Chats
    "Chat",
    "CreateChatPayload",
]
