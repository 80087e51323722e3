"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from chat_core.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def user_service(storage):
    """Create UserService over storage."""
    from chat_core.services import UserService

    return UserService(storage)


@pytest.fixture
def message_service(storage, user_service):
    """Create MessageService over storage."""
    from chat_core.services import MessageService

    return MessageService(storage, user_service)


@pytest.fixture
def chat_service(storage, user_service, message_service):
    """Create ChatService over storage."""
    from chat_core.services import ChatService

    return ChatService(storage, user_service, message_service)


@pytest_asyncio.fixture
async def known_users(storage):
    """Register user1..user3 directly in storage."""
    from chat_core.models import User

    users = []
    for name in ["user1", "user2", "user3"]:
        users.append(
            await storage.create_user(User(id=None, username=name, password="secret"))
        )
    return users


@pytest.fixture
def make_message():
    """Factory for unsaved messages."""
    from chat_core.models import Message

    def _make(
        msg: str = "Hello!",
        msg_from: str = "user1",
        msg_date_time: datetime | None = None,
        type: str = "direct",
    ) -> Message:
        return Message(
            id=None,
            msg=msg,
            msg_from=msg_from,
            msg_date_time=msg_date_time
            or datetime(2025, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
            type=type,
        )

    return _make
