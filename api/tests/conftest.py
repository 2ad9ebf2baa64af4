from __future__ import annotations

import os
import tempfile
import uuid
from typing import Callable, Generator

import pytest

# Configure the app before any portfolio module reads the environment.
_DB_DIR = tempfile.mkdtemp(prefix="portfolio-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["SESSION_SECRET"] = "test-session-secret-that-is-long-enough-0123456789"
os.environ["ADMIN_MASTER_KEY"] = "test-master-key"
os.environ["ADMIN_TOKEN"] = "test-admin-token"
os.environ["ADMIN_EMAIL"] = "admin@example.com"
os.environ["ADMIN_PASSWORD"] = "admin-password"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RESEND_API_KEY", None)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from portfolio import models  # noqa: E402
from portfolio.db import SessionLocal  # noqa: E402
from portfolio.main import app, run_startup_tasks  # noqa: E402
from portfolio.services import accounts  # noqa: E402
from portfolio.services.passwords import hash_password  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"
MASTER_KEY = "test-master-key"
ADMIN_TOKEN = "test-admin-token"
DEFAULT_PASSWORD = "correct-horse"


@pytest.fixture(scope="session", autouse=True)
def bootstrap() -> None:
    run_startup_tasks()


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def db() -> Generator[Session, None, None]:
    """Create a database session for testing."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture()
def sent_emails(monkeypatch) -> dict[str, list[tuple]]:
    """Capture outgoing emails instead of sending them."""
    captured: dict[str, list[tuple]] = {"verification": [], "reset": [], "login": []}

    def capture(kind: str) -> Callable[..., None]:
        def _send(*args, **kwargs) -> None:
            captured[kind].append(args)

        return _send

    monkeypatch.setattr(accounts, "send_verification_email", capture("verification"))
    monkeypatch.setattr(accounts, "send_password_reset_email", capture("reset"))
    monkeypatch.setattr(accounts, "send_login_alert_email", capture("login"))
    return captured


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}@example.com"


@pytest.fixture()
def make_user(db: Session) -> Callable[..., models.User]:
    """Factory for verified accounts with DEFAULT_PASSWORD."""

    def _make_user(name: str = "Test User", is_admin: bool = False, verified: bool = True) -> models.User:
        user = models.User(
            name=name,
            email=unique_email(),
            password_hash=hash_password(DEFAULT_PASSWORD),
            is_admin=is_admin,
            is_verified=verified,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


def login_as(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> None:
    """Sign in through the API; the client keeps the session cookie."""
    response = client.post("/api/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text


def login_admin(client: TestClient) -> None:
    response = client.post(
        "/api/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "type": "admin", "masterKey": MASTER_KEY},
    )
    assert response.status_code == 200, response.text


@pytest.fixture()
def user_client(client: TestClient, make_user, sent_emails) -> tuple[TestClient, models.User]:
    user = make_user()
    login_as(client, user.email)
    return client, user


@pytest.fixture()
def admin_client(client: TestClient, sent_emails) -> TestClient:
    login_admin(client)
    return client
