"""Chat orchestration: session resolution, streaming, persistence, and cancellation."""

from __future__ import annotations

import asyncio
import time
import uuid
import weakref
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

from reasonchat.config import Settings, get_settings
from reasonchat.core import (
    AdapterError,
    SessionNotFoundError,
    StoreError,
    ValidationError,
    get_logger,
    metrics,
    stream_id_ctx,
)
from reasonchat.db.entities import Message, MessageRole
from reasonchat.db.repositories import ConversationStore
from reasonchat.providers import ContextMessage, ModelDescriptor, ProviderRegistry, resolve_model
from reasonchat.services.events import ChatEvent
from reasonchat.services.sinks import QueueSink, ResponseSink
from reasonchat.services.titles import derive_title, placeholder_title

logger = get_logger(__name__)


class TurnOutcome(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TurnCancelled(Exception):
    """Raised from a delta callback once the turn has been aborted."""


@dataclass(frozen=True)
class PreparedTurn:
    """A validated turn whose session is resolved but not yet streamed."""

    session_id: int
    content: str
    model: ModelDescriptor
    created_session: bool = False


@dataclass
class ActiveStream:
    """A turn currently being delivered over HTTP."""

    stream_id: str
    session_id: int
    cancel_event: asyncio.Event
    task: asyncio.Task | None = field(default=None, repr=False)
    opened_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def abort(self) -> None:
        self.cancel_event.set()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class ActiveStreamManager:
    """Registry of in-flight streams, keyed by stream id, for explicit cancellation."""

    def __init__(self) -> None:
        self._streams: dict[str, ActiveStream] = {}
        self._lock = asyncio.Lock()

    def _publish_gauge(self) -> None:
        metrics.set_gauge("active_streams", float(len(self._streams)))

    async def register(self, stream: ActiveStream) -> None:
        async with self._lock:
            self._streams[stream.stream_id] = stream
            self._publish_gauge()

    async def unregister(self, stream_id: str) -> ActiveStream | None:
        async with self._lock:
            stream = self._streams.pop(stream_id, None)
            self._publish_gauge()
        return stream

    async def cancel(self, stream_id: str) -> bool:
        async with self._lock:
            stream = self._streams.get(stream_id)
        if stream is None:
            return False
        logger.info("Cancelling stream", data={"stream_id": stream_id, "session_id": stream.session_id})
        stream.abort()
        return True

    async def get(self, stream_id: str) -> ActiveStream | None:
        async with self._lock:
            return self._streams.get(stream_id)


class SessionLocks:
    """One asyncio lock per session, dropped once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, session_id: int) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock


def build_context(messages: Sequence[Message]) -> list[ContextMessage]:
    """
    Convert persisted history into provider context.

    Assistant reasoning is re-embedded ahead of the answer so that
    multi-turn reasoning survives providers that only accept plain text.
    """
    context: list[ContextMessage] = []
    for message in messages:
        content = message.content
        if message.role is MessageRole.ASSISTANT and message.reasoning:
            content = f"<reasoning>{message.reasoning}</reasoning>\n\n{message.content}"
        context.append(ContextMessage(role=message.role.value, content=content))
    return context


class ChatService:
    """
    Drives one user turn from persistence through provider streaming.

    Turns against the same session are serialized; turns against
    different sessions run concurrently.
    """

    def __init__(
        self,
        store: ConversationStore,
        registry: ProviderRegistry,
        settings: Settings | None = None,
    ):
        self.store = store
        self.registry = registry
        self.settings = settings or get_settings()
        self.manager = ActiveStreamManager()
        self.session_locks = SessionLocks()

    def prepare_turn(
        self,
        content: str,
        session_id: int | None = None,
        model_id: str | None = None,
    ) -> PreparedTurn:
        """
        Validate the request and resolve its session.

        Everything that can be rejected with a client error happens here,
        before any event is streamed.
        """
        if not content or not content.strip():
            raise ValidationError("Message content is required")

        model = resolve_model(model_id, self.settings.default_model_id)
        if model_id and model.id != model_id:
            logger.info(
                "Unknown model requested, using default",
                data={"requested": model_id, "model": model.id},
            )

        if session_id is None:
            session = self.store.create_session(placeholder_title(content))
            logger.info("Created chat session", data={"session_id": session.id})
            return PreparedTurn(session.id, content, model, created_session=True)

        if self.store.get_session(session_id) is None:
            raise SessionNotFoundError(session_id)
        return PreparedTurn(session_id, content, model)

    async def handle_user_message(
        self,
        content: str,
        sink: ResponseSink,
        session_id: int | None = None,
        model_id: str | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> TurnOutcome:
        turn = self.prepare_turn(content, session_id=session_id, model_id=model_id)
        return await self.run_turn(turn, sink, cancel_event=cancel_event)

    async def run_turn(
        self,
        turn: PreparedTurn,
        sink: ResponseSink,
        cancel_event: asyncio.Event | None = None,
        stream_id: str | None = None,
    ) -> TurnOutcome:
        """
        Stream a prepared turn into ``sink`` and close it.

        Setting ``cancel_event`` (or closing the sink) stops event
        forwarding; a cancelled turn never records an assistant message.
        """
        cancel_event = cancel_event or asyncio.Event()
        stream_token = stream_id_ctx.set(stream_id)
        started = time.perf_counter()
        outcome = TurnOutcome.FAILED
        try:
            async with self.session_locks.get(turn.session_id):
                outcome = await self._drive_turn(turn, sink, cancel_event)
        except asyncio.CancelledError:
            if not cancel_event.is_set():
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            outcome = TurnOutcome.CANCELLED
        except StoreError as exc:
            logger.error(
                "Store failure during chat turn",
                data={"session_id": turn.session_id, "code": exc.code.value},
            )
            await sink.send(ChatEvent.error(exc.message))
        except Exception as exc:
            logger.exception(
                "Unexpected error during chat turn",
                exc_info=exc,
                data={"session_id": turn.session_id},
            )
            await sink.send(ChatEvent.error("An unexpected error occurred"))
        finally:
            await sink.close()
            stream_id_ctx.reset(stream_token)
            metrics.observe("stream_duration_seconds", time.perf_counter() - started)

        metrics.increment(f"turns_{outcome.value}")
        if outcome is TurnOutcome.CANCELLED:
            logger.info("Chat turn cancelled", data={"session_id": turn.session_id})
        return outcome

    async def _drive_turn(
        self,
        turn: PreparedTurn,
        sink: ResponseSink,
        cancel_event: asyncio.Event,
    ) -> TurnOutcome:
        if cancel_event.is_set():
            return TurnOutcome.CANCELLED

        user_message = self.store.create_message(turn.session_id, MessageRole.USER, turn.content)
        await sink.send(ChatEvent.user_message(user_message))

        context = build_context(self.store.get_messages(turn.session_id))
        adapter = self.registry.for_model(turn.model)
        logger.info(
            "Streaming chat turn",
            data={
                "session_id": turn.session_id,
                "model": turn.model.id,
                "family": turn.model.family.value,
                "context_messages": len(context),
            },
        )

        async def forward(event: ChatEvent) -> None:
            if cancel_event.is_set() or sink.closed:
                raise TurnCancelled()
            await sink.send(event)

        try:
            result = await adapter.stream(
                context,
                turn.model.id,
                on_reasoning=lambda text: forward(ChatEvent.reasoning(text)),
                on_content=lambda text: forward(ChatEvent.content(text)),
            )
        except TurnCancelled:
            return TurnOutcome.CANCELLED
        except AdapterError as exc:
            if cancel_event.is_set():
                return TurnOutcome.CANCELLED
            logger.warning(
                "Provider error during chat turn",
                data={"session_id": turn.session_id, "code": exc.code.value, "message": exc.message},
            )
            reply = self.store.create_message(
                turn.session_id, MessageRole.ASSISTANT, self.settings.error_reply_text
            )
            self._derive_title_if_first_exchange(turn)
            await sink.send(ChatEvent.assistant_message(reply))
            await sink.send(ChatEvent.error(exc.message))
            return TurnOutcome.FAILED

        if cancel_event.is_set() or sink.closed:
            return TurnOutcome.CANCELLED

        reply = self.store.create_message(
            turn.session_id,
            MessageRole.ASSISTANT,
            result.content or self.settings.empty_reply_text,
            reasoning=result.reasoning,
        )
        self._derive_title_if_first_exchange(turn)
        await sink.send(ChatEvent.assistant_message(reply))
        await sink.send(ChatEvent.complete())
        return TurnOutcome.COMPLETED

    def _derive_title_if_first_exchange(self, turn: PreparedTurn) -> None:
        if len(self.store.get_messages(turn.session_id)) == 2:
            self.store.update_session_title(turn.session_id, derive_title(turn.content))

    def open_stream(self, turn: PreparedTurn) -> tuple[str, AsyncIterator[str]]:
        """
        Start a turn for HTTP delivery.

        Returns the stream id and an iterator of SSE frames. Closing the
        iterator early (client disconnect) cancels the turn.
        """
        stream = ActiveStream(
            stream_id=str(uuid.uuid4()),
            session_id=turn.session_id,
            cancel_event=asyncio.Event(),
        )
        sink = QueueSink()
        ping_interval = self.settings.sse_ping_interval_seconds or None

        async def frames() -> AsyncIterator[str]:
            stream.task = asyncio.create_task(
                self.run_turn(
                    turn, sink, cancel_event=stream.cancel_event, stream_id=stream.stream_id
                )
            )
            await self.manager.register(stream)
            try:
                async for frame in sink.frames(ping_interval):
                    yield frame
            finally:
                stream.abort()
                await self.manager.unregister(stream.stream_id)

        return stream.stream_id, frames()

    async def cancel_stream(self, stream_id: str) -> bool:
        """Abort an active stream; returns False for unknown or finished streams."""
        return await self.manager.cancel(stream_id)
