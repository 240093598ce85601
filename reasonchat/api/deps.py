"""Request-scoped dependencies resolved from application state."""

from __future__ import annotations

from fastapi import Request

from reasonchat.config import get_settings
from reasonchat.db.repositories import ConversationStore, create_conversation_store
from reasonchat.providers import ProviderRegistry
from reasonchat.services import ChatService


def get_store(request: Request) -> ConversationStore:
    """Resolve the conversation store from app state (initialize if missing)."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = create_conversation_store(get_settings())
        request.app.state.store = store
    return store


def get_registry(request: Request) -> ProviderRegistry:
    """The shared ``ProviderRegistry``; built lazily when the lifespan did not run."""
    registry = getattr(request.app.state, "provider_registry", None)
    if registry is None:
        registry = ProviderRegistry(get_settings())
        request.app.state.provider_registry = registry
    return registry


def get_chat_service(request: Request) -> ChatService:
    service = getattr(request.app.state, "chat_service", None)
    if service:
        return service
    service = ChatService(get_store(request), get_registry(request), get_settings())
    request.app.state.chat_service = service
    return service
