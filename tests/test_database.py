"""
Tests for database functionality.

Tests Alembic migrations, model definitions, and database connectivity.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import inspect, text

from reasonchat.config import get_settings
from reasonchat.db import (
    MessageRole,
    SqlConversationStore,
    build_engine,
    dispose_engine,
    get_engine,
    verify_database_connection,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def alembic_config(db_url: str | None = None) -> Config:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    if db_url:
        cfg.set_main_option("sqlalchemy.url", db_url)
    return cfg


@pytest.fixture
def migrated_url(tmp_path) -> str:
    db_url = f"sqlite:///{tmp_path / 'migrated.db'}"
    command.upgrade(alembic_config(db_url), "head")
    return db_url


class TestAlembicMigrations:
    """Test Alembic migration functionality."""

    def test_migrations_create_all_tables(self, migrated_url) -> None:
        engine = build_engine(migrated_url)
        try:
            tables = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        assert {"sessions", "messages", "alembic_version"}.issubset(tables)

    def test_messages_table_has_correct_columns(self, migrated_url) -> None:
        engine = build_engine(migrated_url)
        try:
            inspector = inspect(engine)
            columns = {col["name"] for col in inspector.get_columns("messages")}
            foreign_keys = inspector.get_foreign_keys("messages")
            indexes = {index["name"] for index in inspector.get_indexes("messages")}
        finally:
            engine.dispose()

        assert columns == {"id", "session_id", "role", "content", "reasoning", "timestamp"}
        assert foreign_keys[0]["referred_table"] == "sessions"
        assert foreign_keys[0]["options"].get("ondelete") == "CASCADE"
        assert {"ix_messages_session_id", "ix_messages_timestamp"}.issubset(indexes)

    def test_store_runs_on_migrated_schema(self, migrated_url) -> None:
        store = SqlConversationStore(build_engine(migrated_url))
        try:
            session = store.create_session("migrated")
            store.create_message(session.id, MessageRole.USER, "hi")
            store.create_message(session.id, MessageRole.ASSISTANT, "hello", reasoning="r")
            assert [m.reasoning for m in store.get_messages(session.id)] == [None, "r"]
        finally:
            store.close()

    def test_downgrade_drops_tables(self, migrated_url) -> None:
        command.downgrade(alembic_config(migrated_url), "base")
        engine = build_engine(migrated_url)
        try:
            tables = set(inspect(engine).get_table_names())
        finally:
            engine.dispose()
        assert "sessions" not in tables
        assert "messages" not in tables

    def test_migrations_use_settings_url(self, tmp_path, monkeypatch) -> None:
        db_path = tmp_path / "from-settings.db"
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{db_path}")
        get_settings.cache_clear()
        dispose_engine()
        try:
            command.upgrade(alembic_config(), "head")
            assert "sessions" in inspect(get_engine()).get_table_names()
        finally:
            dispose_engine()
            get_settings.cache_clear()


class TestDatabaseConnectivity:
    """Test database connectivity checks."""

    def test_select_one_on_fresh_database(self, tmp_path) -> None:
        engine = build_engine(f"sqlite:///{tmp_path / 'fresh.db'}")
        try:
            assert verify_database_connection(engine) is True
            with engine.connect() as conn:
                assert conn.execute(text("SELECT 1")).scalar() == 1
        finally:
            engine.dispose()

    def test_unreachable_database_reports_false(self, tmp_path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        engine = build_engine(f"sqlite:///{blocker / 'nested.db'}")
        try:
            assert verify_database_connection(engine) is False
        finally:
            engine.dispose()
