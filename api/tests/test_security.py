"""Tests for password/token helpers, rate limiting and admin seeding."""

from __future__ import annotations

from portfolio import models, settings
from portfolio.seed import ensure_seed_data
from portfolio.services import rate_limit
from portfolio.services.passwords import (
    generate_token,
    hash_password,
    hash_token,
    safe_compare_secrets,
    verify_password,
)


class FakePipeline:
    def __init__(self, store: dict) -> None:
        self.store = store
        self.key: str | None = None

    def incr(self, key: str) -> None:
        self.key = key

    def expire(self, key: str, seconds: int) -> None:
        pass

    def execute(self) -> list:
        self.store[self.key] = self.store.get(self.key, 0) + 1
        return [self.store[self.key], True]


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict = {}

    def get(self, key: str):
        return self.store.get(key)

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self.store)


def test_password_hashing():
    hashed = hash_password("secret-password")
    assert hashed != "secret-password"
    assert verify_password("secret-password", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret-password", None)
    assert not verify_password("secret-password", "not-a-bcrypt-hash")


def test_generate_token_stores_only_the_hash():
    plain, digest = generate_token()
    assert len(plain) == 64
    assert digest == hash_token(plain)
    assert digest != plain


def test_safe_compare_secrets():
    assert safe_compare_secrets("abc", "abc")
    assert not safe_compare_secrets("abc", "abcd")
    assert not safe_compare_secrets("", "")
    assert not safe_compare_secrets(None, "abc")
    assert not safe_compare_secrets("abc", None)


def test_rate_limit_fails_open_without_redis(monkeypatch):
    monkeypatch.setattr(rate_limit, "get_redis_client", lambda: None)
    assert rate_limit.check_rate_limit("ratelimit:test", 1) == (True, 1)


def test_auth_endpoints_are_rate_limited(client, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(rate_limit, "get_redis_client", lambda: fake)
    monkeypatch.setattr(settings, "AUTH_RATE_LIMIT", 2)

    for _ in range(2):
        response = client.post("/api/forgot-password", json={"email": "nobody@example.com"})
        assert response.status_code == 200

    response = client.post("/api/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 429
    assert response.json()["error"] == "Too many attempts. Please try again later."


def test_seed_repairs_admin_account(db):
    admin = db.query(models.User).filter(models.User.email == settings.ADMIN_EMAIL).one()
    admin.is_admin = False
    admin.password_hash = None
    db.commit()

    ensure_seed_data()

    db.refresh(admin)
    assert admin.is_admin is True
    assert admin.is_verified is True
    assert verify_password(settings.ADMIN_PASSWORD, admin.password_hash)
