"""Message-related data models."""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

MessageType = Literal["direct", "global"]


@dataclass
class Message:
    """A single chat message. Never modified after it is stored."""

    id: str | None
    msg: str
    msg_from: str  # sender username
    msg_date_time: datetime
    type: MessageType = "direct"
