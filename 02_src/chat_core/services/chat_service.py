"""ChatService implementation."""

from typing import Protocol

from ..logging_config import get_logger, log_context
from ..models import Chat, CreateChatPayload
from ..results import ErrorCode, ServiceResult
from ..storage import IStorage
from .message_service import IMessageService
from .user_service import IUserService

logger = get_logger(__name__)


class IChatService(Protocol):
    """Chat creation, membership and message attachment."""

    async def save_chat(self, payload: CreateChatPayload) -> ServiceResult[Chat]:
        """Create the initial messages, then the chat referencing them."""
        ...

    async def get_chat(self, chat_id: str) -> ServiceResult[Chat]:
        """Retrieve a chat by id."""
        ...

    async def add_message_to_chat(self, chat_id: str, message_id: str) -> ServiceResult[Chat]:
        """Append an existing message id to a chat."""
        ...

    async def add_participant_to_chat(self, chat_id: str, username: str) -> ServiceResult[Chat]:
        """Append a known user to a chat's participants."""
        ...

    async def get_chats_by_participants(self, usernames: list[str]) -> list[Chat]:
        """List chats whose participants include all given usernames."""
        ...


class ChatService:
    """Orchestrates messages and chats over the document store."""

    def __init__(
        self,
        storage: IStorage,
        users: IUserService,
        messages: IMessageService,
    ):
        self._storage = storage
        self._users = users
        self._messages = messages

    async def save_chat(self, payload: CreateChatPayload) -> ServiceResult[Chat]:
        """
        Create the initial messages, then the chat referencing them.

        Runs as a saga: messages are created one by one in input order, and if
        any message or the chat itself cannot be created, the messages created
        so far are deleted before the failure is returned. The chat's message
        ids keep the input order.
        """
        created_ids: list[str] = []

        for message in payload.messages:
            result = await self._messages.create_message(message)
            if not result:
                await self._discard_messages(created_ids)
                return ServiceResult.failure(result.error, result.error_code)
            created_ids.append(result.data.id)

        try:
            chat = await self._storage.create_chat(
                Chat(
                    id=None,
                    participants=list(payload.participants),
                    messages=created_ids,
                )
            )
        except Exception as e:
            logger.error("Failed to create chat", exc_info=True)
            await self._discard_messages(created_ids)
            return ServiceResult.from_exception("Error saving chat:", e)

        logger.info(
            "Chat created",
            extra=log_context(
                chat_id=chat.id,
                participants=chat.participants,
                message_count=len(chat.messages),
            ),
        )
        return ServiceResult.ok(chat)

    async def get_chat(self, chat_id: str) -> ServiceResult[Chat]:
        """Retrieve a chat by id."""
        try:
            chat = await self._storage.get_chat(chat_id)
        except Exception as e:
            logger.error("Failed to retrieve chat %s", chat_id, exc_info=True)
            return ServiceResult.from_exception("Error retrieving chat:", e)

        if not chat:
            return ServiceResult.failure("Chat not found", ErrorCode.CHAT_NOT_FOUND)
        return ServiceResult.ok(chat)

    async def add_message_to_chat(self, chat_id: str, message_id: str) -> ServiceResult[Chat]:
        """Append an existing message id to a chat.

        The message itself is not touched; callers must not leave the id
        dangling.
        """
        try:
            chat = await self._storage.push_chat_message(chat_id, message_id)
        except Exception as e:
            logger.error("Failed to add message to chat %s", chat_id, exc_info=True)
            return ServiceResult.from_exception("Error adding message to chat:", e)

        if not chat:
            return ServiceResult.failure("Chat not found", ErrorCode.CHAT_NOT_FOUND)

        logger.info(
            "Message added to chat",
            extra=log_context(chat_id=chat_id, message_id=message_id),
        )
        return ServiceResult.ok(chat)

    async def add_participant_to_chat(self, chat_id: str, username: str) -> ServiceResult[Chat]:
        """Append a known user to a chat's participants.

        A missing chat and a user who is already a participant both leave the
        store untouched and produce the same CHAT_NOT_FOUND failure.
        """
        try:
            user = await self._users.find_user(username)
            if not user:
                return ServiceResult.failure(
                    "User does not exist.", ErrorCode.USER_NOT_FOUND
                )

            chat = await self._storage.push_chat_participant(chat_id, username)
        except Exception as e:
            logger.error("Failed to add participant to chat %s", chat_id, exc_info=True)
            return ServiceResult.from_exception("Error adding participant to chat:", e)

        if not chat:
            return ServiceResult.failure(
                "Chat not found or user already a participant.",
                ErrorCode.CHAT_NOT_FOUND,
            )

        logger.info(
            "Participant added to chat",
            extra=log_context(chat_id=chat_id, username=username),
        )
        return ServiceResult.ok(chat)

    async def get_chats_by_participants(self, usernames: list[str]) -> list[Chat]:
        """List chats whose participants include all given usernames.

        No match, a null store result and a store error all yield [].
        """
        try:
            chats = await self._storage.find_chats_by_participants(usernames)
        except Exception:
            logger.error(
                "Failed to list chats",
                exc_info=True,
                extra=log_context(usernames=usernames),
            )
            return []

        return list(chats) if chats else []

    async def _discard_messages(self, message_ids: list[str]) -> None:
        """Compensate a failed save_chat by deleting the messages it created."""
        if not message_ids:
            return

        try:
            removed = await self._storage.delete_messages(message_ids)
        except Exception:
            logger.error(
                "Failed to discard orphaned messages",
                exc_info=True,
                extra=log_context(message_ids=message_ids),
            )
            return

        logger.warning(
            "Discarded messages from failed chat creation",
            extra=log_context(message_ids=message_ids, removed=removed),
        )
