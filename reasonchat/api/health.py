"""Liveness and readiness probes."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from reasonchat import __version__
from reasonchat.api.deps import get_store
from reasonchat.core import metrics
from reasonchat.db import SqlConversationStore, verify_database_connection
from reasonchat.db.repositories import ConversationStore

router = APIRouter(tags=["health"])


@router.get("/health")
@router.get("/healthz")
async def healthcheck() -> dict[str, Any]:
    """Process is up; no dependency checks."""
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/readyz")
async def readiness(store: ConversationStore = Depends(get_store)) -> JSONResponse:
    """
    Ready to take traffic.

    The in-memory store is always ready; the durable store is probed with
    ``SELECT 1``. The payload also carries a metrics snapshot.
    """
    store_ok = True
    if isinstance(store, SqlConversationStore):
        store_ok = verify_database_connection(store.engine)

    return JSONResponse(
        status_code=status.HTTP_200_OK if store_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if store_ok else "not_ready",
            "timestamp": datetime.now(UTC).isoformat(),
            "store": store.backend_name,
            "checks": {"store": store_ok},
            "metrics": metrics.snapshot(),
        },
    )
