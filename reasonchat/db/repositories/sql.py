"""Durable conversation store backed by SQLAlchemy."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from reasonchat.core import SessionNotFoundError, StoreError, get_logger
from reasonchat.db.entities import ChatSession, Message, MessageRole
from reasonchat.db.models import MessageRecord, SessionRecord
from reasonchat.db.repositories.base import ConversationStore

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_session(record: SessionRecord) -> ChatSession:
    return ChatSession(id=record.id, title=record.title, timestamp=_as_utc(record.timestamp))


def _to_message(record: MessageRecord) -> Message:
    return Message(
        id=record.id,
        session_id=record.session_id,
        role=MessageRole(record.role),
        content=record.content,
        reasoning=record.reasoning,
        timestamp=_as_utc(record.timestamp),
    )


class SqlConversationStore(ConversationStore):
    """Relational store; each operation runs in its own short transaction."""

    backend_name = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Conversation store operation failed",
                data={"operation": operation, "error": str(exc)},
            )
            raise StoreError(
                "Conversation store operation failed", details={"operation": operation}
            ) from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def create_session(self, title: str | None = None) -> ChatSession:
        with self._transaction("create_session") as db:
            record = SessionRecord(title=self._normalize_title(title))
            db.add(record)
            db.flush()
            return _to_session(record)

    def get_session(self, session_id: int) -> ChatSession | None:
        with self._transaction("get_session") as db:
            record = db.get(SessionRecord, session_id)
            return _to_session(record) if record else None

    def list_sessions(self) -> list[ChatSession]:
        stmt = select(SessionRecord).order_by(
            SessionRecord.timestamp.desc(), SessionRecord.id.desc()
        )
        with self._transaction("list_sessions") as db:
            return [_to_session(record) for record in db.execute(stmt).scalars()]

    def update_session_title(self, session_id: int, title: str) -> ChatSession:
        with self._transaction("update_session_title") as db:
            record = db.get(SessionRecord, session_id)
            if record is None:
                raise SessionNotFoundError(session_id)
            record.title = title.strip() or record.title
            db.flush()
            return _to_session(record)

    def delete_session(self, session_id: int) -> None:
        with self._transaction("delete_session") as db:
            db.execute(delete(MessageRecord).where(MessageRecord.session_id == session_id))
            db.execute(delete(SessionRecord).where(SessionRecord.id == session_id))

    def get_messages(self, session_id: int | None = None) -> list[Message]:
        with self._transaction("get_messages") as db:
            if session_id is None:
                latest = select(SessionRecord.id).order_by(
                    SessionRecord.timestamp.desc(), SessionRecord.id.desc()
                ).limit(1)
                session_id = db.execute(latest).scalar_one_or_none()
                if session_id is None:
                    return []
            stmt = (
                select(MessageRecord)
                .where(MessageRecord.session_id == session_id)
                .order_by(MessageRecord.timestamp.asc(), MessageRecord.id.asc())
            )
            return [_to_message(record) for record in db.execute(stmt).scalars()]

    def create_message(
        self,
        session_id: int,
        role: MessageRole | str,
        content: str,
        reasoning: str | None = None,
    ) -> Message:
        role, reasoning = self._validate_message(role, content, reasoning)
        with self._transaction("create_message") as db:
            if db.get(SessionRecord, session_id) is None:
                raise SessionNotFoundError(session_id)
            record = MessageRecord(
                session_id=session_id,
                role=role.value,
                content=content,
                reasoning=reasoning,
            )
            db.add(record)
            db.flush()
            return _to_message(record)

    def clear_messages(self, session_id: int) -> None:
        with self._transaction("clear_messages") as db:
            db.execute(delete(MessageRecord).where(MessageRecord.session_id == session_id))

    def close(self) -> None:
        self.engine.dispose()
