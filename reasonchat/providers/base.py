"""
Base provider adapter interface.

Defines the contract every upstream adapter implements: a lazy stream of
classified deltas plus the callback-driven ``stream`` entry point built on it.
"""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import aclosing
from dataclasses import dataclass
from enum import Enum

from reasonchat.core import ValidationError
from reasonchat.providers.catalog import ProviderFamily

DeltaCallback = Callable[[str], Awaitable[None] | None]


class DeltaKind(str, Enum):
    """Channel a streamed fragment belongs to."""

    REASONING = "reasoning"
    CONTENT = "content"


@dataclass(frozen=True)
class ContextMessage:
    """One provider-neutral conversation turn."""

    role: str  # "system", "user", "assistant"
    content: str


@dataclass(frozen=True)
class StreamDelta:
    """A single classified fragment from a streaming response."""

    kind: DeltaKind
    text: str


@dataclass(frozen=True)
class StreamResult:
    """Aggregated outcome of a completed stream."""

    content: str
    reasoning: str | None = None


def validate_context(context: Sequence[ContextMessage]) -> None:
    """Context must be non-empty and end with the user's turn."""
    if not context:
        raise ValidationError("Conversation context must not be empty")
    if context[-1].role != "user":
        raise ValidationError("Conversation context must end with a user message")


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    Subclasses translate a provider-neutral context into their upstream
    wire call and classify each native chunk as reasoning or content.
    """

    family: ProviderFamily

    async def aclose(self) -> None:
        """Close any underlying resources (optional)."""
        return None

    @abstractmethod
    def iter_deltas(
        self, context: Sequence[ContextMessage], model_id: str
    ) -> AsyncIterator[StreamDelta]:
        """
        Stream classified deltas in upstream arrival order.

        Raises:
            AdapterError: On transport failure, non-success status, an
                upstream error payload, or a missing body
        """
        ...

    async def stream(
        self,
        context: Sequence[ContextMessage],
        model_id: str,
        on_reasoning: DeltaCallback | None = None,
        on_content: DeltaCallback | None = None,
    ) -> StreamResult:
        """
        Drive the stream to completion, invoking a callback per delta.

        Fragments are concatenated untouched; only the final aggregates are
        trimmed. Closing early (an exception from a callback, or task
        cancellation) releases the upstream connection.
        """
        validate_context(context)
        reasoning_parts: list[str] = []
        content_parts: list[str] = []

        async with aclosing(self.iter_deltas(context, model_id)) as deltas:
            async for delta in deltas:
                if delta.kind is DeltaKind.REASONING:
                    reasoning_parts.append(delta.text)
                    callback = on_reasoning
                else:
                    content_parts.append(delta.text)
                    callback = on_content
                if callback is not None:
                    result = callback(delta.text)
                    if inspect.isawaitable(result):
                        await result

        reasoning = "".join(reasoning_parts).strip()
        return StreamResult(
            content="".join(content_parts).strip(),
            reasoning=reasoning or None,
        )
