"""
HTTP middleware and exception handlers.

Every response carries ``X-Request-ID``; every error body uses the
``ErrorResponse`` shape.
"""

import time
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from reasonchat.core.errors import AppError, ErrorCode, ErrorResponse
from reasonchat.core.logging import get_logger, request_id_ctx, stream_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Probe traffic is logged at debug level only.
QUIET_PATHS = frozenset({"/health", "/healthz", "/readyz"})

_HTTP_STATUS_CODES = {
    404: ErrorCode.NOT_FOUND,
    405: ErrorCode.METHOD_NOT_ALLOWED,
    413: ErrorCode.REQUEST_TOO_LARGE,
}


def error_json(status_code: int, body: ErrorResponse) -> JSONResponse:
    """Render an error body, echoing the request id header when known."""
    headers = {REQUEST_ID_HEADER: body.request_id} if body.request_id else None
    return JSONResponse(status_code=status_code, content=body.to_dict(), headers=headers)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the logging context and log each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request_token = request_id_ctx.set(request_id)
        stream_token = stream_id_ctx.set(None)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            log = logger.debug if request.url.path in QUIET_PATHS else logger.info
            log(
                "Request completed",
                data={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "stream_id": response.headers.get("X-Stream-ID"),
                },
            )
            return response
        finally:
            request_id_ctx.reset(request_token)
            stream_id_ctx.reset(stream_token)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject request bodies whose declared length exceeds ``max_bytes``."""

    def __init__(self, app: FastAPI, max_bytes: int = 1048576):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length")
        if declared is None:
            return await call_next(request)

        try:
            length = int(declared)
        except ValueError:
            return error_json(
                400,
                ErrorResponse(
                    code=ErrorCode.VALIDATION_ERROR,
                    message="Invalid Content-Length header",
                    request_id=request_id_ctx.get(),
                ),
            )

        if length > self.max_bytes:
            logger.warning(
                "Request too large",
                data={"content_length": length, "max_bytes": self.max_bytes},
            )
            return error_json(
                413,
                ErrorResponse(
                    code=ErrorCode.REQUEST_TOO_LARGE,
                    message=f"Request body exceeds {self.max_bytes} bytes",
                    request_id=request_id_ctx.get(),
                ),
            )

        return await call_next(request)


def _field_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Reduce pydantic errors to JSON-safe ``{field, message}`` pairs."""
    return [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]


def setup_exception_handlers(app: FastAPI) -> None:
    """Map framework and application exceptions onto ``ErrorResponse`` bodies."""

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_json(
            422,
            ErrorResponse(
                code=ErrorCode.VALIDATION_ERROR,
                message="Validation error",
                request_id=request_id_ctx.get(),
                details={"errors": _field_errors(exc)},
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_json(
            exc.status_code,
            ErrorResponse(
                code=_HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR),
                message=str(exc.detail) if exc.detail else "HTTP error",
                request_id=request_id_ctx.get(),
            ),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(_request: Request, exc: AppError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(exc.message, data={"code": exc.code.value, "details": exc.details})
        return error_json(exc.status_code, exc.to_response(request_id=request_id_ctx.get()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            exc_info=exc,
            data={"path": request.url.path, "method": request.method},
        )
        return error_json(
            500,
            ErrorResponse(
                code=ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                request_id=request_id_ctx.get(),
            ),
        )
