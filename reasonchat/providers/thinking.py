"""Adapter for Gemini's generative API with native thought parts."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any

import httpx

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

# Only the most recent turns are sent upstream.
MAX_CONTEXT_TURNS = 10


class ThinkingAdapter(ProviderAdapter):
    """
    Streams ``models/{model}:streamGenerateContent`` as server-sent events.

    Each candidate part carries a ``thought`` flag: flagged text is
    reasoning, the rest is answer content.
    """

    family = ProviderFamily.THINKING

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        system_prompt: str,
        timeout: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["x-goog-api-key"] = api_key
        self.system_prompt = system_prompt
        self.temperature = 0.7
        self.max_output_tokens = 8192
        self.client = create_http_client(
            base_url=base_url,
            timeout_seconds=timeout,
            headers=headers,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def build_payload(self, context: Sequence[ContextMessage]) -> dict[str, Any]:
        contents = [
            {
                "role": "model" if msg.role == "assistant" else "user",
                "parts": [{"text": msg.content}],
            }
            for msg in list(context)[-MAX_CONTEXT_TURNS:]
        ]
        return {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": self.system_prompt}]},
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
                "thinkingConfig": {
                    "includeThoughts": True,
                    "thinkingBudget": -1,  # dynamic
                },
            },
        }

    async def iter_deltas(
        self, context: Sequence[ContextMessage], model_id: str
    ) -> AsyncIterator[StreamDelta]:
        response = await open_stream(
            self.client,
            "POST",
            f"/models/{model_id}:streamGenerateContent",
            params={"alt": "sse"},
            json=self.build_payload(context),
        )
        try:
            await ensure_success(response)
            async for chunk in iter_sse_payloads(response):
                parts = lookup(chunk, "candidates", 0, "content", "parts")
                if not isinstance(parts, list):
                    continue
                for part in parts:
                    text = text_at(part, "text")
                    if not text:
                        continue
                    kind = DeltaKind.REASONING if part.get("thought") is True else DeltaKind.CONTENT
                    yield StreamDelta(kind, text)
        finally:
            await response.aclose()
