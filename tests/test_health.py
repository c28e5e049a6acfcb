"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and timestamp fields
  - No authentication required
"""

from __future__ import annotations

from datetime import datetime


def test_health_returns_200(api_client):
    """Health endpoint returns 200 with status, version, and server time."""
    client, _token, _ = api_client
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["version"]
    assert datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00")).tzinfo is not None


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    client, _, _ = api_client
    resp = client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
