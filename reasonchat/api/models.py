"""Model catalog and diagnostics endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from reasonchat import __version__
from reasonchat.api.deps import get_registry, get_store
from reasonchat.config import get_settings
from reasonchat.db.repositories import ConversationStore
from reasonchat.providers import AVAILABLE_MODELS, ProviderRegistry

router = APIRouter(prefix="/api", tags=["models"])


@router.get("/models")
async def list_models() -> list[dict[str, Any]]:
    """Static model catalog for UI dropdowns."""
    return [model.to_dict() for model in AVAILABLE_MODELS]


@router.get("/debug")
async def debug_info(
    store: ConversationStore = Depends(get_store),
    registry: ProviderRegistry = Depends(get_registry),
) -> dict[str, Any]:
    settings = get_settings()
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "environment": settings.environment,
        "store": store.backend_name,
        "providers": registry.describe(),
        "defaultModel": settings.default_model_id,
    }
