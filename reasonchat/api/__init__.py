"""API routers."""

from reasonchat.api.chat import router as chat_router
from reasonchat.api.health import router as health_router
from reasonchat.api.models import router as models_router
from reasonchat.api.sessions import router as sessions_router

__all__ = [
    "chat_router",
    "health_router",
    "models_router",
    "sessions_router",
]
