"""
Result wrapper returned by every service operation.

Services never raise across their boundary. Expected failures (unknown user,
missing chat, invalid input) and store failures are both reported as a failed
``ServiceResult`` carrying a human-readable message and a machine-readable
``ErrorCode``; callers branch on ``result.success`` (or ``bool(result)``).

Usage:
    result = await chats.add_message_to_chat(chat_id, message_id)
    if result:
        chat = result.data
    else:
        logger.warning("%s (%s)", result.error, result.error_code)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class ErrorCode(str, Enum):
    """Machine-readable failure kinds."""

    # Not found
    USER_NOT_FOUND = "USER_NOT_FOUND"
    CHAT_NOT_FOUND = "CHAT_NOT_FOUND"
    MESSAGE_NOT_FOUND = "MESSAGE_NOT_FOUND"
    # Invalid input
    INVALID_SENDER = "INVALID_SENDER"
    INVALID_INPUT = "INVALID_INPUT"
    USERNAME_TAKEN = "USERNAME_TAKEN"
    # Store failure
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Attributes:
        success: Whether the operation succeeded
        data: Result data if successful (None if failed)
        error: Error message if failed (None if successful)
        error_code: Failure kind if failed
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: ErrorCode | None = None

    @classmethod
    def ok(cls, data: T) -> ServiceResult[T]:
        """Create a successful result."""
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: ErrorCode) -> ServiceResult[T]:
        """Create a failed result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_exception(cls, context: str, exc: BaseException) -> ServiceResult[T]:
        """
        Wrap a store failure, prefixing the cause with operation context.

        Example:
            except Exception as e:
                return ServiceResult.from_exception("Error creating message:", e)
        """
        return cls(
            success=False,
            error=f"{context} {exc}",
            error_code=ErrorCode.PERSISTENCE_ERROR,
        )

    @property
    def is_not_found(self) -> bool:
        """True for any of the *_NOT_FOUND failures."""
        return self.error_code in (
            ErrorCode.USER_NOT_FOUND,
            ErrorCode.CHAT_NOT_FOUND,
            ErrorCode.MESSAGE_NOT_FOUND,
        )

    def map(self, func: Callable[[T], U]) -> ServiceResult[U]:
        """Transform the data if successful; failures pass through unchanged."""
        if self.success and self.data is not None:
            return ServiceResult.ok(func(self.data))
        return self  # type: ignore[return-value]

    def to_response(self) -> dict[str, Any]:
        """Render as a transport-neutral dict (``{"error": ...}`` on failure)."""
        if self.success:
            return {"success": True, "data": self.data}
        return {
            "success": False,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
        }

    def __bool__(self) -> bool:
        return self.success
