"""Tests for liveness/readiness probes and request context."""

from __future__ import annotations


def test_health(make_client) -> None:
    client = make_client()
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert client.get("/healthz").status_code == 200


def test_request_id_echoed(make_client) -> None:
    client = make_client()
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_request_id_generated(make_client) -> None:
    client = make_client()
    response = client.get("/health")
    assert response.headers.get("X-Request-ID")


def test_readyz_with_memory_store(make_client) -> None:
    client = make_client()
    response = client.get("/readyz")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert data["store"] == "memory"
    assert "active_streams" in data["metrics"]["gauges"]


def test_unknown_route_structured_404(make_client) -> None:
    client = make_client()
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "E1002"
