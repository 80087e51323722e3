"""Core module."""

from .app import Application, IApplication
from .models import Chat, CreateChatPayload, Message, MessageType, User
from .results import ErrorCode, ServiceResult
from .services import (
    ChatService,
    IChatService,
    IMessageService,
    IUserService,
    MessageService,
    UserService,
)
from .storage import IStorage, Storage

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "User",
    "Message",
    "MessageType",
    "Chat",
    "CreateChatPayload",
    # Results
    "ErrorCode",
    "ServiceResult",
    # Components
    "IStorage",
    "Storage",
    "IUserService",
    "UserService",
    "IMessageService",
    "MessageService",
    "IChatService",
    "ChatService",
]
