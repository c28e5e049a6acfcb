"""
tests/test_rate_limit.py -- Per-IP limits on POST /register and POST /login.

The suite runs with RATE_LIMIT_ENABLED=false; the limiter_on fixture flips the
shared limiter on for one test and clears its counters before and after.

Covers:
  - the request after the configured count gets 429 rate_limited
  - the 429 carries the error envelope and a Retry-After header
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from core.config import get_settings


def _allowed(limit: str) -> int:
    """'5/minute' -> 5."""
    return int(limit.split("/")[0].split()[0])


@pytest.fixture
def limiter_on(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    limiter.reset()
    monkeypatch.setattr(limiter, "enabled", True)
    yield
    limiter.reset()


class TestRateLimits:
    def test_register_limited(self, api_client: tuple[TestClient, str, str], limiter_on: None) -> None:
        client, _token, _uid = api_client
        allowed = _allowed(get_settings().register_rate_limit)

        codes = [
            client.post("/api/v1/register", json={"username": f"limited-{n}", "password": "password123"}).status_code
            for n in range(allowed)
        ]
        assert codes == [201] * allowed

        resp = client.post("/api/v1/register", json={"username": "limited-extra", "password": "password123"})
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert resp.headers["Retry-After"]

    def test_login_limited(self, api_client: tuple[TestClient, str, str], limiter_on: None) -> None:
        client, _token, _uid = api_client
        allowed = _allowed(get_settings().login_rate_limit)
        body = {"username": "nobody-here", "password": "wrong-password"}

        codes = [client.post("/api/v1/login", json=body).status_code for _ in range(allowed)]
        assert codes == [401] * allowed

        resp = client.post("/api/v1/login", json=body)
        assert resp.status_code == 429
        assert resp.json()["error"]["code"] == "rate_limited"
        assert "Retry-After" in resp.headers

    def test_disabled_limiter_never_blocks(self, api_client: tuple[TestClient, str, str]) -> None:
        client, _token, _uid = api_client
        allowed = _allowed(get_settings().register_rate_limit)
        for n in range(allowed + 2):
            resp = client.post("/api/v1/register", json={"username": f"unlimited-{n}", "password": "password123"})
            assert resp.status_code == 201
