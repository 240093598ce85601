"""Database models, engine, and conversation stores."""

from reasonchat.db.base import Base
from reasonchat.db.engine import (
    build_engine,
    dispose_engine,
    get_engine,
    verify_database_connection,
)
from reasonchat.db.entities import DEFAULT_SESSION_TITLE, ChatSession, Message, MessageRole
from reasonchat.db.models import MessageRecord, SessionRecord
from reasonchat.db.repositories import (
    ConversationStore,
    InMemoryConversationStore,
    SqlConversationStore,
    create_conversation_store,
)

__all__ = [
    # Base
    "Base",
    # Engine
    "build_engine",
    "dispose_engine",
    "get_engine",
    "verify_database_connection",
    # Entities
    "DEFAULT_SESSION_TITLE",
    "ChatSession",
    "Message",
    "MessageRole",
    # Models
    "MessageRecord",
    "SessionRecord",
    # Stores
    "ConversationStore",
    "InMemoryConversationStore",
    "SqlConversationStore",
    "create_conversation_store",
]
