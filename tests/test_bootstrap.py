"""
tests/test_bootstrap.py -- Startup wiring in api/main.py.

Covers:
  - build_services(): fresh store, token service and gate per call
  - bootstrap(): admin creation, idempotence, welcome item seeding
"""

from __future__ import annotations

from datetime import timedelta

from api.main import bootstrap, build_services
from core.config import Settings
from records.models import Role


def _settings(**kwargs) -> Settings:
    values = {
        "secret_key": "s" * 40,
        "admin_username": "boss",
        "admin_password": "bootstrap-pw",
        "bcrypt_rounds": 4,
        "token_expire_minutes": 15,
    }
    values.update(kwargs)
    return Settings(_env_file=None, **values)


def test_build_services_returns_independent_instances() -> None:
    settings = _settings()
    store_a, tokens_a, gate_a = build_services(settings)
    store_b, _tokens_b, _gate_b = build_services(settings)

    assert store_a is not store_b
    assert tokens_a.issuer == settings.jwt_issuer
    assert tokens_a.expires_in == timedelta(minutes=15)

    store_a.create_item("someone", "Only in A", "")
    assert store_b.list_items() == []

    admin, _ = store_a.ensure_admin_user("boss", "bootstrap-pw")
    identity = gate_a.authenticate_request(f"Bearer {tokens_a.issue(admin)}")
    assert identity.is_admin


def test_bootstrap_creates_admin_and_welcome_item() -> None:
    settings = _settings()
    store, _tokens, _gate = build_services(settings)

    bootstrap(store, settings)

    user = store.authenticate("boss", "bootstrap-pw")
    assert user.role is Role.ADMIN
    items = store.list_items()
    assert [i.title for i in items] == ["Welcome Item"]
    assert items[0].owner == "boss"


def test_bootstrap_is_idempotent_for_admin() -> None:
    settings = _settings(seed_welcome_item=False)
    store, _tokens, _gate = build_services(settings)

    bootstrap(store, settings)
    bootstrap(store, settings)

    assert len(store.list_users()) == 1
    assert store.list_items() == []
