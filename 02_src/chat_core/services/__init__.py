"""Service layer module."""

from .chat_service import ChatService, IChatService
from .message_service import IMessageService, MessageService
from .user_service import IUserService, UserService

__all__ = [
    "ChatService",
    "IChatService",
    "IMessageService",
    "MessageService",
    "IUserService",
    "UserService",
]
