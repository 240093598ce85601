"""
Persisted domain entities.

Both store backends return these immutable values; ORM rows never leave the
durable store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_SESSION_TITLE = "New Chat"


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass(frozen=True)
class ChatSession:
    """A persistent grouping of one conversation's messages."""

    id: int
    title: str
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Message:
    """A single chat message.

    ``reasoning`` is only ever set on assistant messages.
    """

    id: int
    session_id: int
    role: MessageRole
    content: str
    timestamp: datetime
    reasoning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "role": self.role.value,
            "content": self.content,
            "reasoning": self.reasoning,
            "timestamp": self.timestamp.isoformat(),
        }
