"""
tests/conftest.py -- Shared test fixtures for ItemVault.

This module provides:
  - FakeClock: a controllable clock injected into the store and token service
  - hasher / clock / store / tokens / gate: fresh, independent instances per test
  - _patch_lifespan(): wires test services into app.state, bypassing real startup
  - api_client: TestClient with an admin JWT for API integration tests

Design: every test gets its own RecordStore -- there is no module-level store
to reset. bcrypt runs at rounds=4 (the minimum) so hashing stays fast.

DEBUG and RATE_LIMIT_ENABLED must be set before any application import so
get_settings() auto-generates SECRET_KEY in dev mode instead of raising
ValueError, and so the login/register limits never trip during a test run.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set before any auth/core/api import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.dependencies import AuthorizationGate
from auth.passwords import PasswordHasher
from auth.tokens import TokenService
from records.store import RecordStore

TEST_SECRET = "test-secret-key-with-at-least-32-characters"
TEST_ISSUER = "itemvault-test"

ADMIN_USERNAME = "testadmin"
ADMIN_PASSWORD = "testpass123"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit fixtures -- one fresh instance per test
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(hasher: PasswordHasher, clock: FakeClock) -> RecordStore:
    return RecordStore(hasher=hasher, clock=clock)


@pytest.fixture
def tokens(clock: FakeClock) -> TokenService:
    return TokenService(TEST_SECRET, issuer=TEST_ISSUER, expires_in=timedelta(hours=1), clock=clock)


@pytest.fixture
def gate(tokens: TokenService) -> AuthorizationGate:
    return AuthorizationGate(tokens)


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(store: RecordStore, tokens: TokenService):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test services into app.state so TestClient routes see
    an isolated store rather than one bootstrapped from the environment.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.store = store
        app.state.tokens = tokens
        app.state.gate = AuthorizationGate(tokens)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(hasher: PasswordHasher) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, admin_id) for API integration tests.

    Uses the real clock: tokens issued here must verify against wall time.
    The admin user is created before the client starts.
    """
    store = RecordStore(hasher=hasher)
    tokens = TokenService(TEST_SECRET, issuer=TEST_ISSUER, expires_in=timedelta(hours=1))
    admin, _created = store.ensure_admin_user(ADMIN_USERNAME, ADMIN_PASSWORD)
    token = tokens.issue(admin)

    app.router.lifespan_context = _patch_lifespan(store, tokens)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token, admin.id
