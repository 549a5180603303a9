# chunksync/sync/errors.py
"""
Sync failures, classified by what the user can do about them.

Every SyncError carries a category with a short user-facing message. A
conflict means the backend saw a concurrent modification: it is marked
retryable, but the coordinator never retries it on its own.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from chunksync.core.http import (
    APIError,
    AuthenticationError,
    ConflictError,
    ConnectivityError,
    RateLimitError,
    ServerError,
)


class SyncErrorCategory(str, Enum):
    CONNECTIVITY = "connectivity"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    AUTH = "auth"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


USER_MESSAGES = {
    SyncErrorCategory.CONFLICT: "File changed during sync. Please try again.",
    SyncErrorCategory.RATE_LIMIT: "Rate limit exceeded. Please try again later.",
    SyncErrorCategory.SERVER: "Server error. Please try again later.",
    SyncErrorCategory.AUTH: "Authentication failed. Please sign in again.",
    SyncErrorCategory.CONNECTIVITY: "Failed to sync. Check your connection.",
}


class SyncError(Exception):
    """Base class for sync failures."""

    category = SyncErrorCategory.UNKNOWN
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.category, str(self))


class SyncConnectionError(SyncError):
    category = SyncErrorCategory.CONNECTIVITY


class SyncRateLimitError(SyncError):
    category = SyncErrorCategory.RATE_LIMIT
    retryable = True


class SyncServerError(SyncError):
    category = SyncErrorCategory.SERVER
    retryable = True


class SyncAuthError(SyncError):
    category = SyncErrorCategory.AUTH


class SyncConflictError(SyncError):
    """Concurrent modification on the backend. Retry advisable; never automatic."""

    category = SyncErrorCategory.CONFLICT
    retryable = True


def sync_error_from_api(error: APIError) -> SyncError:
    """Map a transport-level APIError onto the sync error taxonomy."""
    message = str(error)
    if isinstance(error, ConflictError):
        cls: type = SyncConflictError
    elif isinstance(error, RateLimitError):
        cls = SyncRateLimitError
    elif isinstance(error, ServerError):
        cls = SyncServerError
    elif isinstance(error, AuthenticationError):
        cls = SyncAuthError
    elif isinstance(error, ConnectivityError):
        cls = SyncConnectionError
    else:
        cls = SyncError
    return cls(message, status_code=error.status_code)


__all__ = [
    "SyncErrorCategory",
    "USER_MESSAGES",
    "SyncError",
    "SyncConnectionError",
    "SyncRateLimitError",
    "SyncServerError",
    "SyncAuthError",
    "SyncConflictError",
    "sync_error_from_api",
]
