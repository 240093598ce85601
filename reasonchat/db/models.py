"""
SQLAlchemy ORM models.

Defines the durable tables for chat sessions and their messages.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reasonchat.db.base import Base
from reasonchat.db.entities import DEFAULT_SESSION_TITLE


class SessionRecord(Base):
    """Chat session row."""

    __tablename__ = "sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(
        String(255), nullable=False, default=DEFAULT_SESSION_TITLE
    )
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    messages: Mapped[list[MessageRecord]] = relationship(
        back_populates="session", passive_deletes=True
    )

    __table_args__ = (
        Index("ix_sessions_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )


class MessageRecord(Base):
    """Chat message row."""

    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # user, assistant, system
    content: Mapped[str] = mapped_column(Text, nullable=False)
    reasoning: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    session: Mapped[SessionRecord] = relationship(back_populates="messages")

    __table_args__ = (
        Index("ix_messages_session_id", "session_id"),
        Index("ix_messages_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )
