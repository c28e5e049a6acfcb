"""
tests/test_error_envelope.py -- Every error response uses {"error": {...}}.

Covers:
  - routing 404 (unknown path) and 405 (wrong method)
  - hashing_failure from the store -> 500, without leaking internals

The client here is wired to a store whose hasher always fails, so this module
does not share the api_client fixture.
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.tokens import TokenService
from core.errors import HashingFailure
from records.store import RecordStore

from conftest import TEST_ISSUER, TEST_SECRET, _patch_lifespan


class _FailingHasher:
    def hash(self, plain: str) -> str:
        raise HashingFailure()

    def verify(self, plain: str, hashed: str) -> bool:
        return False


@pytest.fixture(scope="module")
def failing_client() -> Generator[TestClient, None, None]:
    store = RecordStore(hasher=_FailingHasher())
    tokens = TokenService(TEST_SECRET, issuer=TEST_ISSUER, expires_in=timedelta(hours=1))
    app.router.lifespan_context = _patch_lifespan(store, tokens)
    with TestClient(app) as client:
        yield client


class TestRoutingErrors:
    def test_unknown_path(self, failing_client: TestClient) -> None:
        resp = failing_client.get("/api/v1/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": {"code": "http_404", "message": "Not Found"}}

    def test_wrong_method(self, failing_client: TestClient) -> None:
        resp = failing_client.patch("/api/v1/items", json={})
        assert resp.status_code == 405
        assert resp.json()["error"]["code"] == "http_405"
        assert "GET" in resp.headers["Allow"]


class TestServerErrors:
    def test_hashing_failure_is_500(self, failing_client: TestClient) -> None:
        resp = failing_client.post("/api/v1/register", json={"username": "hash-fail", "password": "password123"})
        assert resp.status_code == 500
        assert resp.json() == {"error": {"code": "hashing_failure", "message": HashingFailure.message}}
