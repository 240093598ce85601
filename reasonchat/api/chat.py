"""Message endpoints: history, streaming turns, and cancellation."""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from reasonchat.api.deps import get_chat_service, get_store
from reasonchat.core import NotFoundError, SessionNotFoundError, request_id_ctx
from reasonchat.db.repositories import ConversationStore
from reasonchat.services import ChatService

router = APIRouter(prefix="/api", tags=["chat"])


class SendMessageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1)
    role: Literal["user"] = "user"
    model: str | None = None
    session_id: int | None = Field(None, alias="sessionId")


class CancelStreamRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    stream_id: str = Field(..., alias="streamId")


@router.get("/messages")
def list_messages_route(
    session_id: int | None = Query(None, alias="sessionId"),
    store: ConversationStore = Depends(get_store),
) -> list[dict[str, Any]]:
    """Messages of one session, or of the most recent session when omitted."""
    if session_id is not None and store.get_session(session_id) is None:
        raise SessionNotFoundError(session_id)
    return [message.to_dict() for message in store.get_messages(session_id)]


@router.post("/messages")
async def send_message_route(
    body: SendMessageRequest = Body(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    turn = chat_service.prepare_turn(body.content, session_id=body.session_id, model_id=body.model)
    stream_id, frames = chat_service.open_stream(turn)

    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
        "X-Stream-ID": stream_id,
    }
    request_id = request_id_ctx.get()
    if request_id:
        headers["X-Request-ID"] = request_id
    return StreamingResponse(frames, media_type="text/event-stream", headers=headers)


@router.post("/messages/cancel")
async def cancel_message_route(
    body: CancelStreamRequest = Body(...),
    chat_service: ChatService = Depends(get_chat_service),
) -> dict[str, Any]:
    if not await chat_service.cancel_stream(body.stream_id):
        raise NotFoundError("Stream not found")
    return {"status": "cancelled", "streamId": body.stream_id}
