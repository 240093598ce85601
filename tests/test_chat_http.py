"""HTTP-level tests for message streaming, sessions, and the model catalog."""

from __future__ import annotations

from reasonchat.core import ProviderUnavailableError
from tests.conftest import ScriptedAdapter, parse_frames


def test_post_message_streams_sse(make_client, memory_store) -> None:
    client = make_client(
        ScriptedAdapter([("reasoning", "R1"), ("reasoning", "R2"), ("content", "C1"), ("content", "C2")])
    )

    response = client.post("/api/messages", json={"content": "Hello", "role": "user"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["X-Stream-ID"]
    assert "X-Request-ID" in response.headers

    payloads = parse_frames(response.text)
    assert [p["type"] for p in payloads] == [
        "userMessage",
        "reasoning",
        "reasoning",
        "content",
        "content",
        "assistantMessage",
        "complete",
    ]
    assert payloads[0]["data"]["content"] == "Hello"
    assert payloads[5]["data"]["content"] == "C1C2"
    assert payloads[5]["data"]["reasoning"] == "R1R2"
    assert response.text.startswith("data: ")

    sessions = client.get("/api/chat-sessions").json()
    assert len(sessions) == 1
    assert sessions[0]["title"] == "Hello"

    messages = client.get("/api/messages", params={"sessionId": sessions[0]["id"]}).json()
    assert [m["role"] for m in messages] == ["user", "assistant"]


def test_post_message_to_existing_session(make_client) -> None:
    client = make_client()
    session = client.post("/api/chat-sessions", json={"title": "Mine"}).json()

    response = client.post(
        "/api/messages",
        json={"content": "Hi", "role": "user", "sessionId": session["id"], "model": "gemini-2.5-pro"},
    )

    assert response.status_code == 200
    payloads = parse_frames(response.text)
    assert payloads[0]["data"]["sessionId"] == session["id"]
    assert payloads[-1] == {"type": "complete"}


def test_post_message_provider_failure(make_client) -> None:
    client = make_client(ScriptedAdapter([ProviderUnavailableError("Provider unavailable")]))

    response = client.post("/api/messages", json={"content": "Hello", "role": "user"})

    assert response.status_code == 200
    payloads = parse_frames(response.text)
    assert [p["type"] for p in payloads] == ["userMessage", "assistantMessage", "error"]
    assert payloads[-1]["data"] == "Provider unavailable"


def test_post_message_validation(make_client) -> None:
    client = make_client()

    empty = client.post("/api/messages", json={"content": "", "role": "user"})
    assert empty.status_code == 422
    assert empty.json()["error"]["code"] == "E1001"

    blank = client.post("/api/messages", json={"content": "   ", "role": "user"})
    assert blank.status_code == 400

    wrong_role = client.post("/api/messages", json={"content": "x", "role": "assistant"})
    assert wrong_role.status_code == 422


def test_post_message_unknown_session(make_client) -> None:
    client = make_client()
    response = client.post("/api/messages", json={"content": "Hi", "role": "user", "sessionId": 77})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "E5000"


def test_cancel_unknown_stream(make_client) -> None:
    client = make_client()
    response = client.post("/api/messages/cancel", json={"streamId": "missing"})
    assert response.status_code == 404


def test_get_messages_defaults_to_most_recent_session(make_client) -> None:
    client = make_client()
    assert client.get("/api/messages").json() == []

    client.post("/api/messages", json={"content": "first", "role": "user"})
    client.post("/api/messages", json={"content": "second", "role": "user"})

    messages = client.get("/api/messages").json()
    assert [m["content"] for m in messages if m["role"] == "user"] == ["second"]


def test_get_messages_unknown_session(make_client) -> None:
    client = make_client()
    assert client.get("/api/messages", params={"sessionId": 5}).status_code == 404


def test_session_lifecycle(make_client) -> None:
    client = make_client()

    created = client.post("/api/chat-sessions", json={})
    assert created.status_code == 201
    session_id = created.json()["id"]
    assert created.json()["title"] == "New Chat"

    renamed = client.patch(f"/api/chat-sessions/{session_id}", json={"title": "Renamed"})
    assert renamed.json()["title"] == "Renamed"

    client.post("/api/messages", json={"content": "Hi", "role": "user", "sessionId": session_id})
    cleared = client.delete(f"/api/chat-sessions/{session_id}/messages")
    assert cleared.status_code == 200
    assert client.get("/api/messages", params={"sessionId": session_id}).json() == []

    assert client.delete(f"/api/chat-sessions/{session_id}").status_code == 200
    assert client.delete(f"/api/chat-sessions/{session_id}").status_code == 200
    assert client.get("/api/chat-sessions").json() == []


def test_rename_unknown_session(make_client) -> None:
    client = make_client()
    response = client.patch("/api/chat-sessions/999", json={"title": "x"})
    assert response.status_code == 404


def test_models_catalog(make_client) -> None:
    client = make_client()
    models = client.get("/api/models").json()
    ids = [model["id"] for model in models]
    assert "deepseek-r1" in ids
    assert "gemini-2.5-pro" in ids
    assert set(models[0]) == {"id", "name", "provider", "description", "maxTokens"}


def test_debug_endpoint(make_client) -> None:
    client = make_client()
    data = client.get("/api/debug").json()
    assert data["status"] == "ok"
    assert data["store"] == "memory"
    assert data["providers"] == {"completions": False, "thinking": False, "router": False}
