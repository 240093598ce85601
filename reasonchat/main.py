"""
ReasonChat backend application.

Streams reasoning-aware chat turns from several LLM providers over SSE and
persists the conversations.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reasonchat import __version__
from reasonchat.api import chat_router, health_router, models_router, sessions_router
from reasonchat.config import Settings, get_settings
from reasonchat.core import (
    RequestContextMiddleware,
    RequestSizeLimitMiddleware,
    get_logger,
    setup_exception_handlers,
    setup_logging,
)
from reasonchat.db.repositories import create_conversation_store
from reasonchat.providers import ProviderRegistry
from reasonchat.services import ChatService

logger = get_logger(__name__)


def _attach_components(app: FastAPI, settings: Settings) -> list[str]:
    """
    Put the store, provider registry and chat service on ``app.state``.

    Components already present (injected by tests) are kept. Returns the
    names of the ones created here, which the lifespan owns and closes.
    """
    state = app.state
    created = []
    if not hasattr(state, "store"):
        state.store = create_conversation_store(settings)
        created.append("store")
    if not hasattr(state, "provider_registry"):
        state.provider_registry = ProviderRegistry(settings)
        created.append("provider_registry")
    if not hasattr(state, "chat_service"):
        state.chat_service = ChatService(state.store, state.provider_registry, settings)
    return created


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )

    app.state.start_time = datetime.now(UTC)
    owned = _attach_components(app, settings)
    logger.info(
        "ReasonChat started",
        data={
            "host": settings.host,
            "port": settings.port,
            "environment": settings.environment,
            "store": app.state.store.backend_name,
            "default_model": settings.default_model_id,
        },
    )

    yield

    logger.info("ReasonChat shutting down")
    if "provider_registry" in owned:
        await app.state.provider_registry.aclose()
    if "store" in owned:
        app.state.store.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ReasonChat",
        description="Streaming chat backend unifying reasoning-capable LLM providers",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )

    setup_exception_handlers(app)

    # Last added runs first: CORS, then request context, then size limit.
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_bytes)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_origin_regex=None if settings.is_production else r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Stream-ID"],
    )

    for router in (health_router, models_router, sessions_router, chat_router):
        app.include_router(router)

    return app


app = create_app()
