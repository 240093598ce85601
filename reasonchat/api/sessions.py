"""Chat session management endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from reasonchat.api.deps import get_store
from reasonchat.core import SessionNotFoundError
from reasonchat.db.repositories import ConversationStore

router = APIRouter(prefix="/api/chat-sessions", tags=["sessions"])


class CreateSessionRequest(BaseModel):
    title: str | None = Field(None, max_length=255)


class UpdateSessionRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)


@router.get("")
def list_sessions_route(store: ConversationStore = Depends(get_store)) -> list[dict[str, Any]]:
    return [session.to_dict() for session in store.list_sessions()]


@router.post("", status_code=201)
def create_session_route(
    body: CreateSessionRequest | None = Body(None),
    store: ConversationStore = Depends(get_store),
) -> dict[str, Any]:
    title = body.title if body else None
    return store.create_session(title).to_dict()


@router.patch("/{session_id}")
def rename_session_route(
    session_id: int,
    body: UpdateSessionRequest,
    store: ConversationStore = Depends(get_store),
) -> dict[str, Any]:
    return store.update_session_title(session_id, body.title).to_dict()


@router.delete("/{session_id}")
def delete_session_route(
    session_id: int,
    store: ConversationStore = Depends(get_store),
) -> dict[str, Any]:
    store.delete_session(session_id)
    return {"status": "deleted", "sessionId": session_id}


@router.delete("/{session_id}/messages")
def clear_session_messages_route(
    session_id: int,
    store: ConversationStore = Depends(get_store),
) -> dict[str, Any]:
    if store.get_session(session_id) is None:
        raise SessionNotFoundError(session_id)
    store.clear_messages(session_id)
    return {"status": "cleared", "sessionId": session_id}
