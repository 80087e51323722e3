"""User-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class User:
    """A registered user, identified by a unique username."""

    id: str | None
    username: str
    password: str  # opaque credential, hashed upstream
    date_joined: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    biography: str = ""

    def to_public(self) -> dict:
        """Profile fields safe to hand to a client (no credential)."""
        return {
            "id": self.id,
            "username": self.username,
            "date_joined": self.date_joined.isoformat(),
            "biography": self.biography,
        }
