"""
Error taxonomy for ReasonChat.

Every failure surfaced to a caller carries a stable ``ErrorCode``. Errors
raised before a turn starts streaming become HTTP error bodies; errors
raised by provider adapters mid-stream become ``error`` events.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable error codes for API responses."""

    # General (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    METHOD_NOT_ALLOWED = "E1003"
    REQUEST_TOO_LARGE = "E1004"

    # Upstream providers (4xxx)
    PROVIDER_UNAVAILABLE = "E4000"
    PROVIDER_ERROR = "E4001"
    RATE_LIMITED = "E4002"
    PROVIDER_BAD_RESPONSE = "E4004"
    PROVIDER_AUTH_FAILED = "E4005"

    # Conversation data (5xxx)
    SESSION_NOT_FOUND = "E5000"
    STORE_ERROR = "E5002"


@dataclass(frozen=True)
class ErrorResponse:
    """Structured error body: ``{"error": {code, message, request_id?, details?}}``."""

    code: ErrorCode
    message: str
    request_id: str | None = None
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.request_id:
            error["request_id"] = self.request_id
        if self.details:
            error["details"] = self.details
        return {"error": error}


class AppError(Exception):
    """
    Base application error.

    Subclasses pin ``code``, ``status_code`` and a default message as class
    attributes; instances may override any of them.
    """

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        *,
        code: ErrorCode | None = None,
        status_code: int | None = None,
    ):
        self.message = message or self.default_message
        self.details = details
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_response(self, request_id: str | None = None) -> ErrorResponse:
        return ErrorResponse(
            code=self.code,
            message=self.message,
            request_id=request_id,
            details=self.details,
        )


class ValidationError(AppError):
    """Malformed or missing request fields (400)."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(AppError):
    code = ErrorCode.NOT_FOUND
    status_code = 404
    default_message = "Resource not found"


class SessionNotFoundError(NotFoundError):
    """Chat session does not exist (404)."""

    code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, session_id: int):
        super().__init__(f"Chat session {session_id} not found", {"session_id": session_id})
        self.session_id = session_id


class StoreError(AppError):
    """Persistence failure; fatal to the current request."""

    code = ErrorCode.STORE_ERROR
    status_code = 500
    default_message = "Storage failure"


class AdapterError(AppError):
    """
    Upstream provider failure that aborts a stream.

    ``message`` is human-readable and is what clients see in the
    ``error`` event.
    """

    code = ErrorCode.PROVIDER_ERROR
    status_code = 502
    default_message = "Provider error"


class ProviderUnavailableError(AdapterError):
    """Network failure, timeout, or upstream 5xx."""

    code = ErrorCode.PROVIDER_UNAVAILABLE
    status_code = 503
    default_message = "Provider unavailable"


class ProviderBadResponseError(AdapterError):
    """Upstream error payload or missing body."""

    code = ErrorCode.PROVIDER_BAD_RESPONSE
    default_message = "Provider returned invalid response"


class ProviderAuthError(AdapterError):
    """Upstream rejected our credentials (401/403)."""

    code = ErrorCode.PROVIDER_AUTH_FAILED
    status_code = 401
    default_message = "Provider authentication failed"


class RateLimitError(AdapterError):
    code = ErrorCode.RATE_LIMITED
    status_code = 429
    default_message = "Rate limit exceeded"
