"""MessageService implementation."""

from typing import Protocol

from ..logging_config import get_logger, log_context
from ..models import Message
from ..results import ErrorCode, ServiceResult
from ..storage import IStorage
from .user_service import IUserService

logger = get_logger(__name__)


class IMessageService(Protocol):
    """Creating and reading messages."""

    async def create_message(self, message: Message) -> ServiceResult[Message]:
        """Validate the sender, then persist the message."""
        ...

    async def get_message(self, message_id: str) -> ServiceResult[Message]:
        """Retrieve a message by id."""
        ...


class MessageService:
    """Persists messages whose sender is a known user."""

    def __init__(self, storage: IStorage, users: IUserService):
        self._storage = storage
        self._users = users

    async def create_message(self, message: Message) -> ServiceResult[Message]:
        """Validate the sender, then persist the message.

        Single attempt: a store failure is reported immediately, never retried.
        """
        try:
            sender = await self._users.find_user(message.msg_from)
            if not sender:
                logger.warning(
                    "Rejected message from unknown sender",
                    extra=log_context(msg_from=message.msg_from),
                )
                return ServiceResult.failure(
                    "Message sender is invalid.", ErrorCode.INVALID_SENDER
                )

            created = await self._storage.create_message(message)
        except Exception as e:
            logger.error("Failed to create message", exc_info=True)
            return ServiceResult.from_exception("Error creating message:", e)

        logger.info(
            "Message created",
            extra=log_context(message_id=created.id, msg_from=created.msg_from),
        )
        return ServiceResult.ok(created)

    async def get_message(self, message_id: str) -> ServiceResult[Message]:
        """Retrieve a message by id."""
        try:
            message = await self._storage.get_message(message_id)
        except Exception as e:
            logger.error("Failed to retrieve message %s", message_id, exc_info=True)
            return ServiceResult.from_exception("Error retrieving message:", e)

        if not message:
            return ServiceResult.failure("Message not found", ErrorCode.MESSAGE_NOT_FOUND)
        return ServiceResult.ok(message)
