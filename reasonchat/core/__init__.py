"""Core utilities: errors, logging, metrics, and middleware."""

from reasonchat.core.errors import (
    AdapterError,
    AppError,
    ErrorCode,
    ErrorResponse,
    NotFoundError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderUnavailableError,
    RateLimitError,
    SessionNotFoundError,
    StoreError,
    ValidationError,
)
from reasonchat.core.logging import get_logger, request_id_ctx, setup_logging, stream_id_ctx
from reasonchat.core.metrics import metrics
from reasonchat.core.middleware import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    setup_exception_handlers,
)

__all__ = [
    # Errors
    "AdapterError",
    "AppError",
    "ErrorCode",
    "ErrorResponse",
    "NotFoundError",
    "ProviderAuthError",
    "ProviderBadResponseError",
    "ProviderUnavailableError",
    "RateLimitError",
    "SessionNotFoundError",
    "StoreError",
    "ValidationError",
    # Logging
    "get_logger",
    "request_id_ctx",
    "setup_logging",
    "stream_id_ctx",
    # Metrics
    "metrics",
    # Middleware
    "RequestContextMiddleware",
    "RequestSizeLimitMiddleware",
    "setup_exception_handlers",
]
