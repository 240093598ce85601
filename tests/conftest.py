"""Shared fixtures: settings, both store backends, and provider stubs."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from typing import Any

import pytest
from fastapi.testclient import TestClient

from reasonchat.config import Settings
from reasonchat.db import Base, InMemoryConversationStore, SqlConversationStore, build_engine
from reasonchat.db.repositories import ConversationStore
from reasonchat.providers import (
    ContextMessage,
    DeltaKind,
    ModelDescriptor,
    ProviderAdapter,
    ProviderFamily,
    StreamDelta,
)
from reasonchat.services import ChatEvent, ChatService, ResponseSink

HANG = object()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        storage_backend="memory",
        sse_ping_interval_seconds=0,
        completions_api_key="",
        gemini_api_key="",
        openrouter_api_key="",
    )


@pytest.fixture
def sql_store(tmp_path) -> SqlConversationStore:
    engine = build_engine(f"sqlite:///{tmp_path / 'chat.db'}")
    Base.metadata.create_all(engine)
    store = SqlConversationStore(engine)
    yield store
    store.close()


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path) -> ConversationStore:
    """Every store contract test runs against both backends."""
    if request.param == "memory":
        yield InMemoryConversationStore()
        return
    yield request.getfixturevalue("sql_store")


class ScriptedAdapter(ProviderAdapter):
    """
    Adapter stub replaying a fixed script.

    Steps are ``(kind, text)`` tuples, exceptions to raise, or ``HANG`` to
    block until cancelled.
    """

    family = ProviderFamily.COMPLETIONS

    def __init__(self, steps: list[Any]):
        self.steps = steps
        self.contexts: list[list[ContextMessage]] = []
        self.closed = False

    async def iter_deltas(
        self, context: Sequence[ContextMessage], model_id: str
    ) -> AsyncIterator[StreamDelta]:
        self.contexts.append(list(context))
        try:
            for step in self.steps:
                await asyncio.sleep(0)
                if step is HANG:
                    await asyncio.Event().wait()
                if isinstance(step, Exception):
                    raise step
                kind, text = step
                yield StreamDelta(DeltaKind(kind), text)
        finally:
            self.closed = True


class StubRegistry:
    """Registry stub returning one adapter for every model."""

    def __init__(self, adapter: ProviderAdapter):
        self.adapter = adapter
        self.requested: list[ModelDescriptor] = []

    def for_model(self, model: ModelDescriptor) -> ProviderAdapter:
        self.requested.append(model)
        return self.adapter

    def describe(self) -> dict[str, bool]:
        return {family.value: False for family in ProviderFamily}

    async def aclose(self) -> None:
        return None


class RecordingSink(ResponseSink):
    """Collects events in memory; optional hook runs after each send."""

    def __init__(self, on_send=None):
        self.events: list[ChatEvent] = []
        self._closed = False
        self._on_send = on_send

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: ChatEvent) -> None:
        if self._closed:
            return
        self.events.append(event)
        if self._on_send is not None:
            self._on_send(event, self)

    async def close(self) -> None:
        self._closed = True

    def types(self) -> list[str]:
        return [event.type.value for event in self.events]


def parse_frames(body: str) -> list[dict[str, Any]]:
    """Decode ``data:`` frames of an SSE body, ignoring comments."""
    payloads = []
    for frame in body.split("\n\n"):
        frame = frame.strip()
        if frame.startswith("data:"):
            payloads.append(json.loads(frame[len("data:"):].strip()))
    return payloads


@pytest.fixture
def memory_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def make_client(settings, memory_store):
    """Build a TestClient whose app uses the given adapter script."""
    clients: list[TestClient] = []

    def _make(adapter: ProviderAdapter | None = None) -> TestClient:
        from reasonchat.main import create_app

        app = create_app()
        registry = StubRegistry(adapter or ScriptedAdapter([("content", "ok")]))
        app.state.store = memory_store
        app.state.provider_registry = registry
        app.state.chat_service = ChatService(memory_store, registry, settings)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.__exit__(None, None, None)
