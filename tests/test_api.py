"""Tests for the FastAPI health routes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from vitals.api.server import create_app
from vitals.health.models import ProbeName, ProbeResult
from vitals.health.registry import ProbeRegistry


@pytest.fixture
def healthy_client(settings_factory, stub_registry):
    settings = settings_factory(healthcheck_database=True, healthcheck_cache=True)
    with TestClient(create_app(settings, stub_registry)) as client:
        yield client


@pytest.fixture
def unhealthy_client(settings_factory, stub_registry):
    stub_registry.register(ProbeName.REDIS, lambda s: ProbeResult.down(error="Connection refused"))
    settings = settings_factory(healthcheck_database=True, healthcheck_redis=True)
    with TestClient(create_app(settings, stub_registry)) as client:
        yield client


class TestHealthEndpoint:
    def test_healthy_returns_200(self, healthy_client) -> None:
        resp = healthy_client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"] == {"status": "UP", "total_tables": 3}
        assert list(data["checks"]) == ["database", "cache"]

    def test_unhealthy_returns_500(self, unhealthy_client) -> None:
        resp = unhealthy_client.get("/health")
        assert resp.status_code == 500
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["redis"]["error"] == "Connection refused"
        assert data["checks"]["database"]["status"] == "UP"

    def test_nothing_enabled_returns_500(self, settings_factory, stub_registry) -> None:
        with TestClient(create_app(settings_factory(), stub_registry)) as client:
            resp = client.get("/health")
        assert resp.status_code == 500
        assert resp.json()["checks"] == {}

    def test_raising_probe_still_answers(self, settings_factory) -> None:
        registry = ProbeRegistry()

        def explode(settings):
            raise RuntimeError("boom")

        registry.register(ProbeName.QUEUE, explode)
        with TestClient(create_app(settings_factory(healthcheck_queue=True), registry)) as client:
            resp = client.get("/health")
        assert resp.status_code == 500
        assert resp.json()["checks"]["queue"] == {"status": "DOWN", "error": "boom"}

    def test_custom_route(self, settings_factory, stub_registry) -> None:
        settings = settings_factory(healthcheck_queue=True, health_route="/status")
        with TestClient(create_app(settings, stub_registry)) as client:
            assert client.get("/status").status_code == 200
            assert client.get("/health").status_code == 404


class TestChecksEndpoint:
    def test_lists_registered_and_enabled(self, healthy_client) -> None:
        resp = healthy_client.get("/health/checks")
        assert resp.status_code == 200
        data = resp.json()
        assert data["registered"] == ["env-config", "database", "cache", "queue"]
        assert data["enabled"]["database"] is True
        assert data["enabled"]["loki"] is False
