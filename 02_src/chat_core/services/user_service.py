"""UserService implementation."""

from typing import Protocol

import aiosqlite

from ..logging_config import get_logger, log_context
from ..models import User
from ..results import ErrorCode, ServiceResult
from ..storage import IStorage

logger = get_logger(__name__)


class IUserService(Protocol):
    """User lookup and profile maintenance."""

    async def find_user(self, username: str) -> User | None:
        """Existence lookup used by other services. Store errors propagate."""
        ...

    async def get_user_by_username(self, username: str) -> ServiceResult[User]:
        """Retrieve a user profile."""
        ...


class UserService:
    """Looks users up and maintains their profile fields."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def find_user(self, username: str) -> User | None:
        """Existence lookup used by other services. Store errors propagate."""
        return await self._storage.find_user_by_username(username)

    async def get_user_by_username(self, username: str) -> ServiceResult[User]:
        """Retrieve a user profile."""
        try:
            user = await self._storage.find_user_by_username(username)
        except Exception as e:
            logger.error("Failed to retrieve user %s", username, exc_info=True)
            return ServiceResult.from_exception("Error retrieving user:", e)

        if not user:
            return ServiceResult.failure("User not found", ErrorCode.USER_NOT_FOUND)
        return ServiceResult.ok(user)

    async def save_user(
        self, username: str, password: str, biography: str = ""
    ) -> ServiceResult[User]:
        """Register a new user."""
        if not username.strip() or not password:
            return ServiceResult.failure(
                "Username and password are required.", ErrorCode.INVALID_INPUT
            )

        try:
            if await self._storage.find_user_by_username(username):
                return ServiceResult.failure(
                    "Username already exists.", ErrorCode.USERNAME_TAKEN
                )
            user = await self._storage.create_user(
                User(id=None, username=username, password=password, biography=biography)
            )
        except aiosqlite.IntegrityError:
            # A concurrent registration won between the lookup and the insert
            logger.warning("Username %s taken on insert", username)
            return ServiceResult.failure(
                "Username already exists.", ErrorCode.USERNAME_TAKEN
            )
        except Exception as e:
            logger.error("Failed to save user %s", username, exc_info=True)
            return ServiceResult.from_exception("Error saving user:", e)

        logger.info("User created", extra=log_context(username=username))
        return ServiceResult.ok(user)

    async def update_biography(self, username: str, biography: str) -> ServiceResult[User]:
        """Replace a user's biography text."""
        return await self._update(username, {"biography": biography})

    async def reset_password(
        self, username: str, new_password: str, confirm_password: str
    ) -> ServiceResult[User]:
        """Replace a user's credential after checking both entries agree."""
        if not new_password.strip() or not confirm_password.strip():
            return ServiceResult.failure(
                "Please enter and confirm your new password.", ErrorCode.INVALID_INPUT
            )
        if new_password != confirm_password:
            return ServiceResult.failure("Passwords do not match.", ErrorCode.INVALID_INPUT)

        return await self._update(username, {"password": new_password})

    async def delete_user(self, username: str) -> ServiceResult[User]:
        """Delete a user. Chats and messages referencing them are left as is."""
        try:
            user = await self._storage.delete_user(username)
        except Exception as e:
            logger.error("Failed to delete user %s", username, exc_info=True)
            return ServiceResult.from_exception("Error deleting user:", e)

        if not user:
            return ServiceResult.failure("User not found", ErrorCode.USER_NOT_FOUND)

        logger.info("User deleted", extra=log_context(username=username))
        return ServiceResult.ok(user)

    async def _update(self, username: str, fields: dict) -> ServiceResult[User]:
        try:
            user = await self._storage.update_user(username, fields)
        except Exception as e:
            logger.error("Failed to update user %s", username, exc_info=True)
            return ServiceResult.from_exception("Error updating user:", e)

        if not user:
            return ServiceResult.failure("User not found", ErrorCode.USER_NOT_FOUND)

        logger.info(
            "User updated", extra=log_context(username=username, fields=sorted(fields))
        )
        return ServiceResult.ok(user)
