"""Adapter for OpenAI-compatible completion endpoints with a reasoning delta field."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

from reasonchat.core import get_logger
from reasonchat.providers.base import (
    ContextMessage,
    DeltaKind,
    ProviderAdapter,
    StreamDelta,
)
from reasonchat.providers.catalog import ProviderFamily
from reasonchat.providers.http_client import (
    create_http_client,
    ensure_success,
    iter_sse_payloads,
    lookup,
    open_stream,
    text_at,
)

logger = get_logger(__name__)


class CompletionsAdapter(ProviderAdapter):
    """
    Streams ``/chat/completions`` from a reasoning-capable endpoint.

    The upstream marks thinking tokens with ``delta.reasoning_content``;
    anything in ``delta.content`` is answer text. The model ends its own
    reasoning, so no cap is applied.
    """

    family = ProviderFamily.COMPLETIONS

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        system_prompt: str,
        timeout: int,
        model_map: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self.system_prompt = system_prompt
        self.model_map = dict(model_map or {})
        self.temperature = 0.6
        self.top_p = 0.7
        self.max_tokens = 2048
        self.client = create_http_client(
            base_url=base_url,
            timeout_seconds=timeout,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_payload(self, context: Sequence[ContextMessage], model_id: str) -> dict[str, Any]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend({"role": msg.role, "content": msg.content} for msg in context)
        return {
            "model": self.model_map.get(model_id, model_id),
            "messages": messages,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "stream": True,
        }

    async def iter_deltas(
        self, context: Sequence[ContextMessage], model_id: str
    ) -> AsyncIterator[StreamDelta]:
        payload = self.build_payload(context, model_id)
        response = await open_stream(self.client, "POST", "/chat/completions", json=payload)
        try:
            await ensure_success(response)
            chunk_count = 0
            async for chunk in iter_sse_payloads(response):
                chunk_count += 1
                delta = lookup(chunk, "choices", 0, "delta")
                if not isinstance(delta, dict):
                    if chunk.get("choices"):
                        logger.debug(
                            "Skipping chunk without a delta object",
                            data={"chunk": str(chunk)[:200]},
                        )
                    continue
                reasoning = text_at(delta, "reasoning_content")
                if reasoning:
                    yield StreamDelta(DeltaKind.REASONING, reasoning)
                content = text_at(delta, "content")
                if content:
                    yield StreamDelta(DeltaKind.CONTENT, content)
            logger.debug(
                "Completions stream finished",
                data={"model": payload["model"], "chunks": chunk_count},
            )
        finally:
            await response.aclose()
