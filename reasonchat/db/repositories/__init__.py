"""Conversation store backends and startup selection."""

from reasonchat.config import Settings
from reasonchat.core import get_logger
from reasonchat.db.base import Base
from reasonchat.db.engine import build_engine, verify_database_connection
from reasonchat.db.repositories.base import ConversationStore
from reasonchat.db.repositories.memory import InMemoryConversationStore
from reasonchat.db.repositories.sql import SqlConversationStore

logger = get_logger(__name__)


def create_conversation_store(settings: Settings) -> ConversationStore:
    """
    Select the store backend once, at startup.

    The durable store is probed with a trivial query; when the database
    cannot be reached the process degrades to the in-memory store instead
    of failing to start.
    """
    if settings.storage_backend == "memory":
        logger.info("Using in-memory conversation store")
        return InMemoryConversationStore()

    try:
        engine = build_engine(settings.database_url, debug=settings.debug)
    except Exception as exc:
        logger.warning(
            "Durable store unavailable, falling back to in-memory store",
            data={"error": str(exc)},
        )
        return InMemoryConversationStore()

    if not verify_database_connection(engine):
        engine.dispose()
        logger.warning("Durable store unavailable, falling back to in-memory store")
        return InMemoryConversationStore()

    if settings.database_auto_create:
        Base.metadata.create_all(engine)

    logger.info("Using durable conversation store", data={"dialect": engine.dialect.name})
    return SqlConversationStore(engine)


__all__ = [
    "ConversationStore",
    "InMemoryConversationStore",
    "SqlConversationStore",
    "create_conversation_store",
]
