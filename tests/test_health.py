"""
tests/test_health.py -- Integration tests for health, index, docs and the error envelope.

Covers:
  - 200 response with status, version, and components fields
  - Degraded status when a store stops answering
  - No authentication required for health and index
  - /docs and /redoc require a bearer token
  - Unknown routes use the standard error envelope
"""

from __future__ import annotations


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    client, _tokens = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"]
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_no_auth_required(api_client):
    client, _tokens = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200


def test_health_degraded_when_store_fails(api_client, monkeypatch):
    client, _tokens = api_client
    monkeypatch.setattr(client.app.state.record_store, "ping", lambda: False)
    data = client.get("/api/v1/health").json()
    assert data["status"] == "degraded"
    assert data["components"]["database"] == "error"


def test_index_lists_endpoints(api_client):
    client, _tokens = api_client
    data = client.get("/").json()
    assert data["name"] == "VerifyTrack API"
    assert data["endpoints"]["records"] == "/api/v1/records"


def test_docs_require_auth(api_client):
    client, tokens = api_client
    for path in ("/docs", "/redoc"):
        assert client.get(path).status_code == 401
        resp = client.get(path, headers={"Authorization": f"Bearer {tokens['user001']}"})
        assert resp.status_code == 200
        assert "text/html" in resp.headers["content-type"]


def test_unknown_route_uses_error_envelope(api_client):
    client, _tokens = api_client
    resp = client.get("/api/v1/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "http_404"
