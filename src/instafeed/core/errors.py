"""HTTP error types raised by the API handlers.

Every error renders as ``{"error": <message>}``; keyword arguments passed to
an error are merged into that body (for example ``data=None`` on endpoints
whose success shape is ``{"data": ..., "error": null}``).
"""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status


class ApiError(HTTPException):
    """Base class for errors that map to a JSON error response."""

    status_code_default: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message_default: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
            headers=headers,
        )
        self.extra = extra

    @property
    def message(self) -> str:
        return str(self.detail)

    def to_body(self) -> dict[str, Any]:
        """Return the JSON body for this error."""
        return {"error": self.message, **self.extra}


class ValidationError(ApiError):
    """Raised when request input fails validation (oversized file, empty comment...)."""

    status_code_default = status.HTTP_400_BAD_REQUEST
    message_default = "Invalid request"


class UnauthorizedError(ApiError):
    """Raised when a verified identity is required but missing."""

    status_code_default = status.HTTP_401_UNAUTHORIZED
    message_default = "Unauthorized"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"}, **extra)


class ForbiddenError(ApiError):
    """Raised when the requester does not own the target row."""

    status_code_default = status.HTTP_403_FORBIDDEN
    message_default = "Forbidden"


class NotFoundError(ApiError):
    """Raised when a referenced row does not exist."""

    status_code_default = status.HTTP_404_NOT_FOUND
    message_default = "Not found"


class ConflictError(ApiError):
    """Raised when an insert collides with an existing row."""

    status_code_default = status.HTTP_409_CONFLICT
    message_default = "Conflict"


def error_body(exc: HTTPException) -> dict[str, Any]:
    """Render any HTTPException, ours or FastAPI's, as an error body."""
    if isinstance(exc, ApiError):
        return exc.to_body()
    return {"error": str(exc.detail)}
