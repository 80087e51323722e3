"""Tests for MessageService."""

from unittest.mock import AsyncMock, patch

import aiosqlite

from chat_core.results import ErrorCode


class TestCreateMessage:
    """Tests for MessageService.create_message()."""

    async def test_create_message_when_sender_exists(
        self, message_service, storage, known_users, make_message
    ):
        """Test that a valid message is persisted with an id."""
        message = make_message(msg="Hey!", msg_from="user1")

        result = await message_service.create_message(message)

        assert result.success
        created = result.data
        assert created.id is not None
        assert created.msg == "Hey!"
        assert created.msg_from == "user1"
        assert created.msg_date_time == message.msg_date_time
        assert created.type == "direct"
        assert await storage.get_message(created.id) == created

    async def test_create_message_unknown_sender(
        self, message_service, storage, make_message
    ):
        """Test that an unknown sender is rejected and nothing is stored."""
        result = await message_service.create_message(
            make_message(msg="Hi", msg_from="ghost")
        )

        assert not result
        assert result.error == "Message sender is invalid."
        assert result.error_code is ErrorCode.INVALID_SENDER
        async with storage._conn.execute("SELECT COUNT(*) FROM messages") as cursor:
            assert (await cursor.fetchone())[0] == 0

    async def test_create_message_db_failure(
        self, message_service, storage, known_users, make_message
    ):
        """Test that a store failure is wrapped, not raised."""
        with patch.object(
            storage, "create_message", AsyncMock(side_effect=RuntimeError("Create failed"))
        ) as create:
            result = await message_service.create_message(make_message())

        assert result.error_code is ErrorCode.PERSISTENCE_ERROR
        assert result.error.startswith("Error creating message:")
        assert "Create failed" in result.error
        # no retry
        assert create.await_count == 1

    async def test_create_message_lookup_failure(
        self, message_service, storage, make_message
    ):
        """Test that a failing sender lookup is wrapped too."""
        with patch.object(
            storage,
            "find_user_by_username",
            AsyncMock(side_effect=aiosqlite.OperationalError("locked")),
        ):
            result = await message_service.create_message(make_message())

        assert result.error == "Error creating message: locked"


class TestGetMessage:
    """Tests for MessageService.get_message()."""

    async def test_get_message(self, message_service, known_users, make_message):
        """Test reading a created message."""
        created = (await message_service.create_message(make_message())).data

        result = await message_service.get_message(created.id)
        assert result.data == created

    async def test_get_missing_message(self, message_service):
        """Test reading an unknown message."""
        result = await message_service.get_message("nope")
        assert result.error == "Message not found"
        assert result.error_code is ErrorCode.MESSAGE_NOT_FOUND

    async def test_get_message_db_failure(self, message_service, storage):
        """Test that store errors become a failed result."""
        with patch.object(
            storage, "get_message", AsyncMock(side_effect=RuntimeError("DB Error"))
        ):
            result = await message_service.get_message("m1")

        assert result.error == "Error retrieving message: DB Error"
