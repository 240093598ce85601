"""Consumers of ordered chat events."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from reasonchat.core import metrics
from reasonchat.services.events import ChatEvent, format_sse, format_sse_comment


class ResponseSink(ABC):
    """Receives the events of one turn, in order, then is closed once."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...

    @abstractmethod
    async def send(self, event: ChatEvent) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


_CLOSED = object()


class QueueSink(ResponseSink):
    """
    In-process sink backed by an unbounded ``asyncio.Queue``.

    The producer never blocks; the consumer drains with ``events()`` or,
    for HTTP delivery, ``frames()``. Events sent after ``close()`` are
    dropped.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[object] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: ChatEvent) -> None:
        if self._closed:
            return
        self._queue.put_nowait(event)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def events(self) -> AsyncIterator[ChatEvent]:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]

    async def frames(self, ping_interval: float | None = None) -> AsyncIterator[str]:
        """Yield SSE frames, with ``: ping`` comments while the producer is idle."""
        while True:
            try:
                if ping_interval:
                    item = await asyncio.wait_for(self._queue.get(), timeout=ping_interval)
                else:
                    item = await self._queue.get()
            except TimeoutError:
                metrics.increment("sse_pings_sent")
                yield format_sse_comment()
                continue
            if item is _CLOSED:
                return
            yield format_sse(item)  # type: ignore[arg-type]
