"""Tests for prefix mounting and CORS."""

from fastapi.testclient import TestClient


def test_routes_only_reachable_under_prefix(probe_client, probe) -> None:
    """Unprefixed paths 404 and never reach a handler."""
    response = probe_client.get("/ping")
    assert response.status_code == 404
    assert response.json()["path"] == "/ping"
    assert probe.calls == []

    response = probe_client.get("/api/v1/ping")
    assert response.status_code == 200
    assert response.json() == {"pong": "ok"}
    assert len(probe.calls) == 1


def test_async_handlers_are_supported(probe_client) -> None:
    """Coroutine handlers are awaited directly."""
    response = probe_client.get("/api/v1/async-ping")
    assert response.status_code == 200
    assert response.json() == {"pong": "async"}


def test_health_endpoints(client) -> None:
    """The bundled health routes respond under the prefix."""
    assert client.get("/api/v1/health").json() == {"status": "healthy"}

    status = client.get("/api/v1/").json()
    assert status["status"] == "OK"
    assert status["service"] == "apiboot"
    assert status["uptime_seconds"] >= 0

    assert client.get("/health").status_code == 404


def test_route_status_code_is_used(probe_client) -> None:
    """A route's declared success code is returned."""
    response = probe_client.post("/api/v1/widgets", json={"name": "bolt", "count": 2})
    assert response.status_code == 201


def test_cors_headers_present(client) -> None:
    """Cross-origin requests are allowed from any origin."""
    origin = "https://example.org"
    response = client.get("/api/v1/health", headers={"Origin": origin})
    assert response.headers["access-control-allow-origin"] in ("*", origin)

    preflight = client.options(
        "/api/v1/echo",
        headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
    )
    assert preflight.status_code == 200
    assert "POST" in preflight.headers["access-control-allow-methods"]


def test_cors_can_be_disabled(make_client) -> None:
    """With CORS off no allow-origin header is sent."""
    client = make_client(cors_enabled=False)
    response = client.get("/api/v1/health", headers={"Origin": "https://example.org"})
    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_create_app_factory(config) -> None:
    """The ASGI factory mounts the default module under the prefix."""
    from apiboot.main import create_app

    client = TestClient(create_app(config))
    assert client.get("/api/v1/health").status_code == 200
    assert client.get("/api/v1/").status_code == 200
    assert client.post("/api/v1/echo", json={"message": "hi"}).status_code == 200
    assert client.get("/api/v1/docs").status_code == 200
    assert client.get("/api/v1/openapi.json").status_code == 200
    assert client.get("/health").status_code == 404
    assert client.get("/docs").status_code == 404
