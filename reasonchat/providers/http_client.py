"""
Shared HTTP plumbing for provider adapters.

Covers streamed requests, server-sent event decoding, and mapping of
upstream failures onto ``AdapterError`` subclasses. Nothing here retries;
a failed turn is retried by the caller re-submitting it.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx

from reasonchat.core import (
    AdapterError,
    ProviderAuthError,
    ProviderBadResponseError,
    ProviderUnavailableError,
    RateLimitError,
    get_logger,
    request_id_ctx,
)

logger = get_logger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"
CONNECT_TIMEOUT_SECONDS = 10.0
ERROR_BODY_LIMIT = 300


def create_http_client(
    base_url: str,
    timeout_seconds: int,
    headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    AsyncClient for one provider.

    ``timeout_seconds`` bounds each read, so a reasoning model may think
    silently for that long between chunks. ``transport`` is for tests.
    """
    timeout = httpx.Timeout(
        timeout_seconds, connect=min(CONNECT_TIMEOUT_SECONDS, float(timeout_seconds))
    )
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        timeout=timeout,
        headers=headers,
        transport=transport,
    )


async def open_stream(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a request and return the response with its body still unread.

    The caller owns the response and must ``aclose()`` it.
    """
    headers = dict(kwargs.pop("headers", None) or {})
    request_id = request_id_ctx.get()
    if request_id:
        headers.setdefault("X-Request-ID", request_id)

    request = client.build_request(method, url, headers=headers, **kwargs)
    try:
        return await client.send(request, stream=True)
    except httpx.TransportError as exc:
        raise ProviderUnavailableError(details={"reason": str(exc)}) from exc
    except httpx.HTTPError as exc:
        raise AdapterError("Provider request failed", details={"reason": str(exc)}) from exc


def _status_error(status: int, details: dict[str, Any]) -> AdapterError:
    if status in (401, 403):
        return ProviderAuthError(details=details, status_code=status)
    if status == 429:
        return RateLimitError("Provider rate limit exceeded", details=details)
    if status >= 500:
        return ProviderUnavailableError(f"Provider unavailable ({status})", details=details)
    return AdapterError(f"Provider error ({status})", details=details)


async def ensure_success(response: httpx.Response) -> None:
    """Raise the matching ``AdapterError`` for a 4xx/5xx streamed response."""
    if response.status_code < 400:
        return
    await response.aread()
    details = _error_details(response)
    logger.warning("Provider HTTP error", data=details)
    raise _status_error(response.status_code, details)


async def iter_sse_payloads(response: httpx.Response) -> AsyncIterator[dict[str, Any]]:
    """
    Decode ``data:`` lines of an SSE body into JSON objects.

    Undecodable lines are skipped; an upstream ``error`` object aborts the
    stream, as does a body that carried no data lines at all.
    """
    saw_data = False
    try:
        async for line in response.aiter_lines():
            line = line.strip()
            if not line.startswith(SSE_DATA_PREFIX):
                continue
            data = line[len(SSE_DATA_PREFIX):].strip()
            saw_data = True
            if data == SSE_DONE:
                return
            try:
                payload = json.loads(data)
            except json.JSONDecodeError:
                logger.debug("Skipping malformed stream line", data={"line": data[:200]})
                continue
            if not isinstance(payload, dict):
                continue
            if payload.get("error"):
                raise ProviderBadResponseError(
                    _error_message(payload["error"]), details={"error": payload["error"]}
                )
            yield payload
    except httpx.HTTPError as exc:
        raise ProviderUnavailableError(
            "Provider stream interrupted", details={"reason": str(exc)}
        ) from exc

    if not saw_data:
        raise ProviderBadResponseError("Provider returned no response body")


def lookup(payload: Any, *path: str | int) -> Any:
    """
    Walk ``path`` through nested dicts and lists.

    Returns None as soon as a step does not fit the value's shape, so a
    chunk with an unexpected structure reads as empty instead of raising.
    """
    value = payload
    for step in path:
        if isinstance(step, int):
            if not isinstance(value, list) or not -len(value) <= step < len(value):
                return None
        elif not isinstance(value, dict):
            return None
        value = value[step] if isinstance(step, int) else value.get(step)
    return value


def text_at(payload: Any, *path: str | int) -> str:
    """Non-empty string at ``path``, else the empty string."""
    value = lookup(payload, *path)
    return value if isinstance(value, str) else ""


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and error.get("message"):
        return f"Provider error: {error['message']}"
    return "Provider returned an error event"


def _error_details(response: httpx.Response) -> dict[str, Any]:
    """Status, URL and the start of the (already read) body; no headers."""
    return {
        "status": response.status_code,
        "url": str(response.url.copy_with(query=None)),
        "body": response.content[:ERROR_BODY_LIMIT].decode("utf-8", errors="replace"),
    }
