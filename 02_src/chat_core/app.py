"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .config import database_url_from_env, resolve_db_path
from .logging_config import get_logger
from .services import ChatService, MessageService, UserService
from .storage import IStorage, Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap.

    Owns the single store connection and injects it into every service.
    """

    def __init__(self, db_path: str | None = None):
        env_db_path = database_url_from_env() if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._users: UserService | None = None
        self._messages: MessageService | None = None
        self._chats: ChatService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. UserService (depends on Storage)
        self._users = UserService(self._storage)

        # 3. MessageService (depends on Storage + UserService for sender checks)
        self._messages = MessageService(self._storage, self._users)

        # 4. ChatService (depends on all of the above)
        self._chats = ChatService(self._storage, self._users, self._messages)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._chats = None
        self._messages = None
        self._users = None
        if self._storage:
            await self._storage.close()
            self._storage = None
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def users(self) -> UserService:
        """Get user service instance."""
        if not self._users:
            raise RuntimeError("Application not started")
        return self._users

    @property
    def messages(self) -> MessageService:
        """Get message service instance."""
        if not self._messages:
            raise RuntimeError("Application not started")
        return self._messages

    @property
    def chats(self) -> ChatService:
        """Get chat service instance."""
        if not self._chats:
            raise RuntimeError("Application not started")
        return self._chats
