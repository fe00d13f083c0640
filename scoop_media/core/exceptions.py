# scoop_media/core/exceptions.py
from __future__ import annotations

"""
Scoop Media • Application Exceptions
====================================
A small, consistent layer on top of FastAPI/Starlette's `HTTPException` that
carries the media error taxonomy and renders the `{"message": ...}` body the
mobile client already parses.

Taxonomy
--------
- `NotConfiguredError`  (501) deployment has no media bucket; not retried
- `ForbiddenError`      (403) ownership check failed
- `MissingFieldError`   (400) malformed request payload
- `StorageError`        (500) explicit delete could not be completed
- `UnauthorizedError`   (401) no caller identity on the request

Transcoder failures are *not* part of this list: the processing pipeline
absorbs them and falls back to the original asset.

Usage
-----
    raise ForbiddenError(user_id=identity.user_id, details={"key": key})
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

__all__ = [
    "AppException",
    "NotConfiguredError",
    "ForbiddenError",
    "MissingFieldError",
    "StorageError",
    "UnauthorizedError",
]


# ──────────────────────────────────────────────────────────────
# 📦 Core: AppException
# ──────────────────────────────────────────────────────────────
class AppException(HTTPException):
    """Base application-level exception with optional metadata.

    Attributes
    -----------
    status_code : int
        HTTP status code.
    message : str
        Human-readable error message (serialized as `detail` as well).
    user_id : str | None
        Caller id for log context; never rendered to clients.
    details : dict | None
        Machine-readable details, rendered under `details`.
    """

    def __init__(
        self,
        *,
        status_code: int,
        message: str,
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message: str = message
        self.user_id: Optional[str] = user_id
        self.details: Optional[Any] = details

    def to_body(self, *, request_id: Optional[str] = None) -> Dict[str, Any]:
        """Return the client-facing JSON body."""
        body: Dict[str, Any] = {"message": self.message, "request_id": request_id or "N/A"}
        if self.details is not None:
            body["details"] = self.details
        return body


# ──────────────────────────────────────────────────────────────
# 🧱 Media domain exceptions
# ──────────────────────────────────────────────────────────────
class NotConfiguredError(AppException):
    """Raised when no backing bucket is configured for the deployment."""

    def __init__(self, *, message: str = "Media storage not configured") -> None:
        super().__init__(status_code=status.HTTP_501_NOT_IMPLEMENTED, message=message)


class ForbiddenError(AppException):
    """Raised when the caller does not own the storage key."""

    def __init__(
        self,
        *,
        message: str = "Forbidden",
        user_id: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            message=message,
            user_id=user_id,
            details=details,
        )


class MissingFieldError(AppException):
    """Raised for malformed or incomplete request payloads."""

    def __init__(self, *, message: str, details: Optional[Any] = None) -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, message=message, details=details)


class StorageError(AppException):
    """Raised when a storage mutation requested by the caller fails."""

    def __init__(self, *, message: str = "Failed to delete media", user_id: Optional[str] = None) -> None:
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message=message,
            user_id=user_id,
        )


class UnauthorizedError(AppException):
    """Raised when the request carries no usable caller identity."""

    def __init__(self, *, message: str = "Unauthorized") -> None:
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=message,
            headers={"WWW-Authenticate": "Bearer"},
        )
