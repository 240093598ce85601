"""Conversation store contract shared by every backend."""

from __future__ import annotations

from abc import ABC, abstractmethod

from reasonchat.core import ValidationError
from reasonchat.db.entities import DEFAULT_SESSION_TITLE, ChatSession, Message, MessageRole


class ConversationStore(ABC):
    """
    Owns persisted chat sessions and messages.

    Every operation is individually atomic. Implementations must be
    interchangeable: the same contract tests run against each of them.
    """

    backend_name: str

    @abstractmethod
    def create_session(self, title: str | None = None) -> ChatSession:
        """Create a session; a blank title falls back to the placeholder."""
        ...

    @abstractmethod
    def get_session(self, session_id: int) -> ChatSession | None:
        ...

    @abstractmethod
    def list_sessions(self) -> list[ChatSession]:
        """Return sessions ordered by last activity, newest first."""
        ...

    @abstractmethod
    def update_session_title(self, session_id: int, title: str) -> ChatSession:
        """
        Rename a session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        ...

    @abstractmethod
    def delete_session(self, session_id: int) -> None:
        """Delete a session and all of its messages. Unknown ids are ignored."""
        ...

    @abstractmethod
    def get_messages(self, session_id: int | None = None) -> list[Message]:
        """
        Return messages in chronological order (timestamp, then id).

        When ``session_id`` is omitted the most recently active session is
        used; an empty store yields an empty list.
        """
        ...

    @abstractmethod
    def create_message(
        self,
        session_id: int,
        role: MessageRole | str,
        content: str,
        reasoning: str | None = None,
    ) -> Message:
        """
        Insert an immutable message.

        Raises:
            ValidationError: If content is empty or reasoning is set on a non-assistant message
            SessionNotFoundError: If the session does not exist
        """
        ...

    @abstractmethod
    def clear_messages(self, session_id: int) -> None:
        """Delete every message of a session, keeping the session itself."""
        ...

    def close(self) -> None:
        """Release backend resources (optional)."""
        return None

    @staticmethod
    def _normalize_title(title: str | None) -> str:
        return title.strip() if title and title.strip() else DEFAULT_SESSION_TITLE

    @staticmethod
    def _validate_message(
        role: MessageRole | str, content: str, reasoning: str | None
    ) -> tuple[MessageRole, str | None]:
        try:
            role = MessageRole(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown message role: {role}") from exc
        if not content or not content.strip():
            raise ValidationError("Message content must not be empty")
        if reasoning is not None and role is not MessageRole.ASSISTANT:
            raise ValidationError("Only assistant messages may carry reasoning")
        return role, reasoning or None
