"""
Error taxonomy for the Pet Story backend.

Every error that can reach the HTTP boundary derives from PetStoryError and
knows its status code and JSON envelope. Route handlers never build error
responses themselves; the exception handlers in api.main translate these.
"""

from enum import Enum
from typing import Any, Optional


class ConfigurationError(Exception):
    """Required startup configuration is missing or malformed. Fatal at boot."""


class PetStoryError(Exception):
    """Base class for errors mapped to a JSON error envelope."""

    status_code = 500
    error = "Internal server error"

    def __init__(self, message: str = "", *, detail: Optional[str] = None):
        super().__init__(message or self.error)
        self.message = message
        # Internal detail, only exposed outside production
        self.detail = detail

    def to_payload(self, expose_detail: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if expose_detail and self.detail:
            payload["message"] = self.detail
        return payload


class ValidationError(PetStoryError):
    """Client input is malformed. Carries every violation, not just the first."""

    status_code = 400
    error = "Validation error"

    def __init__(self, details: list[dict[str, str]]):
        super().__init__()
        self.details = details

    def __str__(self) -> str:
        fields = ", ".join(d["field"] for d in self.details)
        return f"Validation error on: {fields}"

    def to_payload(self, expose_detail: bool = False) -> dict[str, Any]:
        return {"error": self.error, "details": self.details}


class UpstreamCause(str, Enum):
    """Why a PIMS call failed."""

    CONNECTION_REFUSED = "connection_refused"
    AUTHENTICATION_FAILED = "authentication_failed"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


# (error title, user-facing message) per cause
UPSTREAM_MESSAGES: dict[UpstreamCause, tuple[str, str]] = {
    UpstreamCause.CONNECTION_REFUSED: (
        "Cannot connect to veterinary system",
        "Unable to connect to PIMS server",
    ),
    UpstreamCause.AUTHENTICATION_FAILED: (
        "Authentication failed with veterinary system",
        "PIMS authentication failed",
    ),
    UpstreamCause.ACCESS_DENIED: (
        "Access denied by veterinary system",
        "PIMS access denied",
    ),
    UpstreamCause.NOT_FOUND: (
        "Veterinary system endpoint not found",
        "PIMS endpoint not found",
    ),
    UpstreamCause.SERVER_ERROR: (
        "Veterinary system error",
        "PIMS server error",
    ),
    UpstreamCause.UNKNOWN: (
        "Failed to fetch pets",
        "Failed to fetch pets from PIMS",
    ),
}


class UpstreamError(PetStoryError):
    """A PIMS call failed. The cause picks the user-facing message."""

    status_code = 502

    def __init__(
        self,
        cause: UpstreamCause,
        *,
        upstream_status: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        title, message = UPSTREAM_MESSAGES[cause]
        super().__init__(message, detail=detail)
        self.cause = cause
        self.error = title
        self.upstream_status = upstream_status

    def to_payload(self, expose_detail: bool = False) -> dict[str, Any]:
        # Raw transport text never reaches the client, even in development
        return {"error": self.error, "message": self.message}


class GenerationError(PetStoryError):
    """The completion call failed or returned no content."""

    status_code = 500
    error = "Failed to generate story. Please try again."


class ContentModerationError(PetStoryError):
    """A generated story was flagged and flagged stories are being blocked."""

    status_code = 422
    error = "Content flagged"


class PersistenceError(PetStoryError):
    """Saving a story to the persistence backend failed or is unconfigured."""

    status_code = 502
    error = "Failed to save story"


class CORSError(PetStoryError):
    status_code = 403
    error = "CORS error"

    def __init__(self, origin: str = ""):
        super().__init__("Origin not allowed")
        self.origin = origin


class RateLimitError(PetStoryError):
    """Client exceeded a rate-limit window."""

    status_code = 429

    def __init__(
        self,
        error: str,
        message: str,
        *,
        retry_after_seconds: int,
        retry_after_text: Optional[str] = None,
    ):
        super().__init__(message)
        self.error = error
        self.retry_after_seconds = retry_after_seconds
        self.retry_after_text = retry_after_text

    def to_payload(self, expose_detail: bool = False) -> dict[str, Any]:
        payload = {"error": self.error, "message": self.message}
        if self.retry_after_text:
            payload["retryAfter"] = self.retry_after_text
        return payload
