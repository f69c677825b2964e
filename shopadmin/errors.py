"""Error types shared by the client, the state object and the front ends.

Every failure an operator can hit ends up as an ``AdminError`` whose
``message`` is shown inline next to the form or list that triggered it.
"""

from typing import Iterable, List, Optional

__all__ = [
    "AdminError",
    "NetworkError",
    "ApiError",
    "SessionExpiredError",
    "NotAuthenticatedError",
    "FormValidationError",
    "user_message",
]

SESSION_EXPIRED_MESSAGE = "Authentication required. Please login again."


class AdminError(Exception):
    """Base class for all user-facing admin errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class NetworkError(AdminError):
    """Raised when the backend cannot be reached (connection error, timeout)."""


class ApiError(AdminError):
    """Raised when the backend answers with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SessionExpiredError(ApiError):
    """Raised on HTTP 401. Durable storage has already been cleared."""

    def __init__(self, message: str = SESSION_EXPIRED_MESSAGE):
        super().__init__(message, status_code=401)


class NotAuthenticatedError(AdminError):
    """Raised when a protected operation is attempted without a session."""

    def __init__(self, message: str = "Not logged in."):
        super().__init__(message)


class FormValidationError(AdminError):
    """Raised when form input cannot be turned into a valid payload."""

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid form input")


def user_message(exc: BaseException) -> str:
    """Normalize any exception into a single display string."""
    if isinstance(exc, AdminError):
        return exc.message
    return str(exc) or exc.__class__.__name__
