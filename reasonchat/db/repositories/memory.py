"""Process-local conversation store used for tests and degraded-mode operation."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import UTC, datetime

from reasonchat.core import SessionNotFoundError
from reasonchat.db.entities import ChatSession, Message, MessageRole
from reasonchat.db.repositories.base import ConversationStore


class InMemoryConversationStore(ConversationStore):
    """Dictionary-backed store with monotonically assigned integer ids."""

    backend_name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[int, ChatSession] = {}
        self._messages: dict[int, Message] = {}
        self._next_session_id = 1
        self._next_message_id = 1

    def create_session(self, title: str | None = None) -> ChatSession:
        with self._lock:
            session = ChatSession(
                id=self._next_session_id,
                title=self._normalize_title(title),
                timestamp=datetime.now(UTC),
            )
            self._next_session_id += 1
            self._sessions[session.id] = session
            return session

    def get_session(self, session_id: int) -> ChatSession | None:
        with self._lock:
            return self._sessions.get(session_id)

    def list_sessions(self) -> list[ChatSession]:
        with self._lock:
            return sorted(
                self._sessions.values(),
                key=lambda s: (s.timestamp, s.id),
                reverse=True,
            )

    def update_session_title(self, session_id: int, title: str) -> ChatSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            updated = replace(session, title=title.strip() or session.title)
            self._sessions[session_id] = updated
            return updated

    def delete_session(self, session_id: int) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
            self._drop_messages(session_id)

    def get_messages(self, session_id: int | None = None) -> list[Message]:
        with self._lock:
            if session_id is None:
                if not self._sessions:
                    return []
                session_id = max(
                    self._sessions.values(), key=lambda s: (s.timestamp, s.id)
                ).id
            return sorted(
                (m for m in self._messages.values() if m.session_id == session_id),
                key=lambda m: (m.timestamp, m.id),
            )

    def create_message(
        self,
        session_id: int,
        role: MessageRole | str,
        content: str,
        reasoning: str | None = None,
    ) -> Message:
        role, reasoning = self._validate_message(role, content, reasoning)
        with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            message = Message(
                id=self._next_message_id,
                session_id=session_id,
                role=role,
                content=content,
                reasoning=reasoning,
                timestamp=datetime.now(UTC),
            )
            self._next_message_id += 1
            self._messages[message.id] = message
            return message

    def clear_messages(self, session_id: int) -> None:
        with self._lock:
            self._drop_messages(session_id)

    def _drop_messages(self, session_id: int) -> None:
        doomed = [mid for mid, m in self._messages.items() if m.session_id == session_id]
        for message_id in doomed:
            del self._messages[message_id]
