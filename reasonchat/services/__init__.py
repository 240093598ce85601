"""
Business logic services.

Orchestrates providers, persistence, and event delivery.
"""

from reasonchat.services.chat_service import (
    ChatService,
    PreparedTurn,
    TurnOutcome,
    build_context,
)
from reasonchat.services.events import ChatEvent, EventType, format_sse
from reasonchat.services.sinks import QueueSink, ResponseSink
from reasonchat.services.titles import derive_title, placeholder_title

__all__ = [
    "ChatEvent",
    "ChatService",
    "EventType",
    "PreparedTurn",
    "QueueSink",
    "ResponseSink",
    "TurnOutcome",
    "build_context",
    "derive_title",
    "format_sse",
    "placeholder_title",
]
