"""Chat-related data models."""

from dataclasses import dataclass, field
from datetime import datetime

from .messages import Message


@dataclass
class Chat:
    """A conversation: participant usernames plus referenced message ids."""

    id: str | None
    participants: list[str] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)  # message ids, append order
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class CreateChatPayload:
    """Input for creating a chat together with its first messages."""

    participants: list[str]
    messages: list[Message] = field(default_factory=list)
