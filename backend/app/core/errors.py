"""
Request-level errors for the chat membership endpoints.

Each error short-circuits the handler that raised it; FastAPI renders it as
``{"detail": ...}`` with the status code below.
"""
from typing import Any

from fastapi import HTTPException, status


class ChatsError(HTTPException):
    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, detail: Any = None):
        super().__init__(status_code=self.status_code, detail=detail or self.message)


class MissingParameter(ChatsError):
    message = "Missing required information"


class ValidationError(ChatsError):
    message = "Missing required information"


class MalformedParameter(ChatsError):
    message = "Malformed parameter. chatId must be a number"


class ChatNotFound(ChatsError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Chat ID not found"


class MemberNotFound(ChatsError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "email not found"


class EmailNotFound(ChatsError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class DuplicateMembership(ChatsError):
    message = "user already joined"


class NotInChat(ChatsError):
    message = "user not in chat"


class StoreError(ChatsError):
    """Wraps a driver error; the driver text is passed through to the caller."""

    message = "SQL Error"

    def __init__(self, error: BaseException, message: str = None):
        self.original = error
        super().__init__({"message": message or self.message, "error": str(error)})
