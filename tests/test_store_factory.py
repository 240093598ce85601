"""Tests for startup store selection and durable-store fallback."""

from __future__ import annotations

from reasonchat.config import Settings
from reasonchat.db import InMemoryConversationStore, MessageRole, SqlConversationStore
from reasonchat.db.repositories import create_conversation_store


def test_memory_backend_selected_explicitly() -> None:
    store = create_conversation_store(Settings(storage_backend="memory"))
    assert isinstance(store, InMemoryConversationStore)


def test_sql_backend_creates_schema(tmp_path) -> None:
    settings = Settings(
        storage_backend="sql",
        database_url=f"sqlite:///{tmp_path / 'nested' / 'chat.db'}",
    )
    store = create_conversation_store(settings)
    try:
        assert isinstance(store, SqlConversationStore)
        session = store.create_session("durable")
        store.create_message(session.id, MessageRole.USER, "persisted")
        assert [m.content for m in store.get_messages(session.id)] == ["persisted"]
    finally:
        store.close()


def test_unreachable_database_falls_back_to_memory(tmp_path) -> None:
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("occupied")
    settings = Settings(
        storage_backend="sql",
        database_url=f"sqlite:///{blocker / 'chat.db'}",
    )

    store = create_conversation_store(settings)

    assert isinstance(store, InMemoryConversationStore)
    session = store.create_session()
    store.create_message(session.id, MessageRole.USER, "still works")
    assert len(store.get_messages(session.id)) == 1


def test_invalid_database_url_falls_back_to_memory() -> None:
    settings = Settings(storage_backend="sql", database_url="notadialect://nowhere")
    store = create_conversation_store(settings)
    assert isinstance(store, InMemoryConversationStore)
