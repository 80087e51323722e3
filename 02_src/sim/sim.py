"""SIM implementation - hardcoded seeding scenario."""

from datetime import datetime, timezone
from typing import Callable, Protocol

from chat_core.app import Application
from chat_core.logging_config import get_logger
from chat_core.models import Chat, CreateChatPayload, Message, User

logger = get_logger(__name__)


class ISim(Protocol):
    """Generate demo data through the service layer."""

    async def run(self) -> dict[str, list[Chat]]:
        """Run the hardcoded scenario; return each user's chats."""
        ...


class Sim:
    """SIM with a hardcoded scenario for local runs."""

    def __init__(
        self,
        application: Application,
        clock: Callable[[], datetime] | None = None,
    ):
        self._app = application
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(self) -> dict[str, list[Chat]]:
        """Run the hardcoded scenario; return each user's chats."""
        virtual_users = [
            {"username": "alice", "biography": "Backend on-call this week"},
            {"username": "bob", "biography": "Frontend"},
            {"username": "charlie", "biography": ""},
        ]

        for user in virtual_users:
            result = await self._app.users.save_user(
                user["username"], password="changeme", biography=user["biography"]
            )
            if not result:
                logger.info("SIM: %s: %s", user["username"], result.error)
                continue
            profile = result.map(User.to_public).to_response()
            logger.info("SIM: registered %s", profile["data"])

        # alice and bob start a chat with two messages
        saved = await self._app.chats.save_chat(
            CreateChatPayload(
                participants=["alice", "bob"],
                messages=[
                    self._message("alice", "Hi Bob, got a minute?"),
                    self._message("alice", "The deploy is stuck."),
                ],
            )
        )
        if not saved:
            logger.error("SIM: Failed to save chat: %s", saved.error)
            return {}
        chat = saved.data

        # bob replies, then charlie is pulled in
        reply = await self._app.messages.create_message(
            self._message("bob", "On it, adding Charlie.")
        )
        if reply:
            await self._app.chats.add_message_to_chat(chat.id, reply.data.id)

        joined = await self._app.chats.add_participant_to_chat(chat.id, "charlie")
        logger.info("SIM: add charlie -> %s", "ok" if joined else joined.error)

        # An unknown sender is rejected
        ghost = await self._app.messages.create_message(self._message("ghost", "Boo"))
        logger.info("SIM: ghost message -> %s", ghost.to_response())

        summary = {}
        for user in virtual_users:
            chats = await self._app.chats.get_chats_by_participants([user["username"]])
            summary[user["username"]] = chats
            logger.info("SIM: %s is in %d chat(s)", user["username"], len(chats))
        return summary

    def _message(self, sender: str, text: str) -> Message:
        return Message(
            id=None, msg=text, msg_from=sender, msg_date_time=self._clock(), type="direct"
        )
