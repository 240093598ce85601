"""Conversation store contract, exercised against both backends."""

from __future__ import annotations

import pytest

from reasonchat.core import ErrorCode, SessionNotFoundError, ValidationError
from reasonchat.db import DEFAULT_SESSION_TITLE, MessageRole


def test_create_session_defaults_title(store) -> None:
    session = store.create_session()
    assert session.title == DEFAULT_SESSION_TITLE
    assert store.get_session(session.id) == session


def test_message_ids_strictly_increase(store) -> None:
    first = store.create_session("one")
    second = store.create_session("two")
    ids = []
    for index in range(3):
        ids.append(store.create_message(first.id, MessageRole.USER, f"m{index}").id)
        ids.append(store.create_message(second.id, "user", f"n{index}").id)
    assert ids == sorted(ids)
    assert len(set(ids)) == len(ids)


def test_ids_not_reused_after_delete(store) -> None:
    session = store.create_session()
    last = store.create_message(session.id, MessageRole.USER, "hello")
    store.delete_session(session.id)

    fresh = store.create_session()
    message = store.create_message(fresh.id, MessageRole.USER, "again")
    assert fresh.id > session.id
    assert message.id > last.id


def test_messages_round_trip_in_order(store) -> None:
    session = store.create_session()
    store.create_message(session.id, MessageRole.USER, "  spaced question ")
    store.create_message(
        session.id, MessageRole.ASSISTANT, "answer", reasoning="step one\nstep two"
    )
    store.create_message(session.id, MessageRole.USER, "follow-up")

    messages = store.get_messages(session.id)

    assert [m.content for m in messages] == ["  spaced question ", "answer", "follow-up"]
    assert [m.role for m in messages] == [
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.USER,
    ]
    assert messages[0].reasoning is None
    assert messages[1].reasoning == "step one\nstep two"
    assert all(m.session_id == session.id for m in messages)


def test_timestamps_read_back_as_written(store) -> None:
    session = store.create_session("clock")
    created = store.create_message(session.id, MessageRole.USER, "hello")

    [loaded] = store.get_messages(session.id)
    [listed] = [s for s in store.list_sessions() if s.id == session.id]

    assert loaded.to_dict()["timestamp"] == created.to_dict()["timestamp"]
    assert loaded.to_dict()["timestamp"].endswith("+00:00")
    assert listed.to_dict()["timestamp"] == session.to_dict()["timestamp"]
    assert store.get_session(session.id).timestamp.utcoffset() is not None


def test_empty_content_rejected(store) -> None:
    session = store.create_session()
    with pytest.raises(ValidationError) as exc:
        store.create_message(session.id, MessageRole.USER, "   ")
    assert exc.value.code == ErrorCode.VALIDATION_ERROR
    assert store.get_messages(session.id) == []


def test_reasoning_only_on_assistant(store) -> None:
    session = store.create_session()
    with pytest.raises(ValidationError):
        store.create_message(session.id, MessageRole.USER, "hi", reasoning="nope")


def test_unknown_role_rejected(store) -> None:
    session = store.create_session()
    with pytest.raises(ValidationError):
        store.create_message(session.id, "moderator", "hi")


def test_message_for_unknown_session_rejected(store) -> None:
    with pytest.raises(SessionNotFoundError):
        store.create_message(404, MessageRole.USER, "hi")


def test_delete_session_is_idempotent_and_cascades(store) -> None:
    session = store.create_session()
    store.create_message(session.id, MessageRole.USER, "hi")
    store.create_message(session.id, MessageRole.ASSISTANT, "hello")

    store.delete_session(session.id)
    store.delete_session(session.id)

    assert store.get_session(session.id) is None
    assert store.get_messages(session.id) == []


def test_delete_unknown_session_is_noop(store) -> None:
    store.delete_session(12345)


def test_update_title(store) -> None:
    session = store.create_session()
    updated = store.update_session_title(session.id, "Renamed")
    assert updated.title == "Renamed"
    assert store.get_session(session.id).title == "Renamed"


def test_update_title_unknown_session(store) -> None:
    with pytest.raises(SessionNotFoundError) as exc:
        store.update_session_title(999, "Nope")
    assert exc.value.code == ErrorCode.SESSION_NOT_FOUND
    assert exc.value.status_code == 404


def test_list_sessions_most_recent_first(store) -> None:
    first = store.create_session("first")
    second = store.create_session("second")
    third = store.create_session("third")

    assert [s.id for s in store.list_sessions()] == [third.id, second.id, first.id]


def test_get_messages_without_session_uses_most_recent(store) -> None:
    assert store.get_messages() == []

    older = store.create_session("older")
    store.create_message(older.id, MessageRole.USER, "old")
    newer = store.create_session("newer")
    store.create_message(newer.id, MessageRole.USER, "new")

    assert [m.content for m in store.get_messages()] == ["new"]


def test_clear_messages_keeps_session(store) -> None:
    session = store.create_session("keep me")
    other = store.create_session("other")
    store.create_message(session.id, MessageRole.USER, "hi")
    store.create_message(other.id, MessageRole.USER, "untouched")

    store.clear_messages(session.id)

    assert store.get_session(session.id) is not None
    assert store.get_messages(session.id) == []
    assert len(store.get_messages(other.id)) == 1


def test_message_wire_shape(store) -> None:
    session = store.create_session()
    message = store.create_message(session.id, MessageRole.ASSISTANT, "x", reasoning="r")
    wire = message.to_dict()
    assert wire["sessionId"] == session.id
    assert wire["role"] == "assistant"
    assert wire["reasoning"] == "r"
    assert set(wire) == {"id", "sessionId", "role", "content", "reasoning", "timestamp"}
