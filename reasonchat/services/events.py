"""Wire-level chat events streamed to clients."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from reasonchat.db.entities import Message


class EventType(str, Enum):
    USER_MESSAGE = "userMessage"
    REASONING = "reasoning"
    CONTENT = "content"
    ASSISTANT_MESSAGE = "assistantMessage"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ChatEvent:
    """
    One event of a turn.

    Within a turn, reasoning/content events precede at most one
    assistantMessage event, which precedes exactly one terminal event.
    """

    type: EventType
    data: Any = None

    @classmethod
    def user_message(cls, message: Message) -> ChatEvent:
        return cls(EventType.USER_MESSAGE, message)

    @classmethod
    def reasoning(cls, text: str) -> ChatEvent:
        return cls(EventType.REASONING, text)

    @classmethod
    def content(cls, text: str) -> ChatEvent:
        return cls(EventType.CONTENT, text)

    @classmethod
    def assistant_message(cls, message: Message) -> ChatEvent:
        return cls(EventType.ASSISTANT_MESSAGE, message)

    @classmethod
    def complete(cls) -> ChatEvent:
        return cls(EventType.COMPLETE)

    @classmethod
    def error(cls, text: str) -> ChatEvent:
        return cls(EventType.ERROR, text)

    def to_wire(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"type": self.type.value}
        if self.type is EventType.COMPLETE:
            return payload
        if isinstance(self.data, Message):
            payload["data"] = self.data.to_dict()
        else:
            payload["data"] = self.data
        return payload


def format_sse(event: ChatEvent) -> str:
    """Serialize an event as a ``data: <json>`` frame."""
    data = json.dumps(event.to_wire(), separators=(",", ":"), ensure_ascii=False)
    return f"data: {data}\n\n"


def format_sse_comment(comment: str = "ping") -> str:
    """Serialize an SSE comment (used for keep-alives)."""
    return f": {comment}\n\n"
