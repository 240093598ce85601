"""Adapter for OpenRouter, fanning out to many named models."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Sequence
from typing import Any

import httpx

from reasonchat.providers.base import (
    ContextMessage,
    DeltaKind,
    ProviderAdapter,
    StreamDelta,
)
from reasonchat.providers.catalog import ProviderFamily, reasoning_model_ids
from reasonchat.providers.http_client import (
    create_http_client,
    ensure_success,
    iter_sse_payloads,
    lookup,
    open_stream,
    text_at,
)


class RouterAdapter(ProviderAdapter):
    """
    Streams OpenRouter ``/chat/completions``.

    Reasoning is requested and extracted only for models in the
    ``reasoning_models`` capability set; for every other model a
    reasoning-shaped field in the stream is ignored.
    """

    family = ProviderFamily.ROUTER

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        system_prompt: str,
        timeout: int,
        referer: str | None = None,
        title: str | None = None,
        reasoning_models: Iterable[str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title
        self.system_prompt = system_prompt
        self.temperature = 0.7
        self.reasoning_models = (
            frozenset(reasoning_models)
            if reasoning_models is not None
            else reasoning_model_ids(ProviderFamily.ROUTER)
        )
        self.client = create_http_client(
            base_url=base_url,
            timeout_seconds=timeout,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def supports_reasoning(self, model_id: str) -> bool:
        return model_id in self.reasoning_models

    def build_payload(self, context: Sequence[ContextMessage], model_id: str) -> dict[str, Any]:
        messages = [{"role": "system", "content": self.system_prompt}]
        messages.extend({"role": msg.role, "content": msg.content} for msg in context)
        payload: dict[str, Any] = {
            "model": model_id,
            "messages": messages,
            "stream": True,
            "temperature": self.temperature,
        }
        if self.supports_reasoning(model_id):
            payload["reasoning"] = {"max_tokens": 2000, "effort": "high"}
        return payload

    async def iter_deltas(
        self, context: Sequence[ContextMessage], model_id: str
    ) -> AsyncIterator[StreamDelta]:
        extract_reasoning = self.supports_reasoning(model_id)
        response = await open_stream(
            self.client, "POST", "/chat/completions", json=self.build_payload(context, model_id)
        )
        try:
            await ensure_success(response)
            async for chunk in iter_sse_payloads(response):
                delta = lookup(chunk, "choices", 0, "delta")
                if not isinstance(delta, dict):
                    continue
                reasoning = text_at(delta, "reasoning") if extract_reasoning else ""
                if reasoning:
                    yield StreamDelta(DeltaKind.REASONING, reasoning)
                content = text_at(delta, "content")
                if content:
                    yield StreamDelta(DeltaKind.CONTENT, content)
        finally:
            await response.aclose()
