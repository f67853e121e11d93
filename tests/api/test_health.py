from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from leavedesk.api import health


class _UnreachableEngine:
    def connect(self):
        raise OSError("connection refused")


def test_health_returns_ok(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    # No DATABASE_URL or REDIS_URL in tests: in-memory repos, in-memory limiter
    assert data["checks"] == {"database": "not_configured", "redis": "not_configured"}


def test_ready_returns_200(client: TestClient) -> None:
    resp = client.get("/ready")
    assert resp.status_code == 200


def test_unreachable_database_degrades(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(health, "engine", _UnreachableEngine())

    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
    assert resp.json()["checks"]["database"] == "degraded"

    assert client.get("/ready").status_code == 503


def test_health_needs_no_authentication(client: TestClient) -> None:
    assert client.get("/health", headers={"Authorization": "Bearer junk"}).status_code == 200
