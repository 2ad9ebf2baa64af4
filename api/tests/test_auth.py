"""Test authentication functionality."""

from __future__ import annotations

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, DEFAULT_PASSWORD, MASTER_KEY, login_as, unique_email

from portfolio import settings
from portfolio.auth import create_session_token, decode_session_token
from portfolio.services import site_content


def _register(client, email: str, password: str = DEFAULT_PASSWORD, name: str = "New Person"):
    return client.post("/api/register", json={"name": name, "email": email, "password": password})


def test_register_verify_login_flow(client, sent_emails):
    email = unique_email("flow")
    response = _register(client, email.upper())
    assert response.status_code == 200
    assert response.json()["success"] is True

    # Unverified accounts cannot sign in
    response = client.post("/api/login", json={"email": email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 403
    assert response.json() == {
        "success": False,
        "error": "Email not verified. Please verify first.",
        "canResend": True,
    }

    to_email, token, _name = sent_emails["verification"][-1]
    assert to_email == email
    response = client.get("/api/verify-email", params={"token": token})
    assert response.status_code == 200
    assert response.json()["message"] == "Email verified"

    # The token is single use
    response = client.get("/api/verify-email", params={"token": token})
    assert response.status_code == 400

    response = client.post("/api/login", json={"email": email, "password": DEFAULT_PASSWORD})
    assert response.status_code == 200
    assert response.json()["role"] == "user"
    assert "session" in response.cookies
    assert sent_emails["login"]

    response = client.get("/api/me")
    assert response.status_code == 200
    me = response.json()["user"]
    assert me["email"] == email
    assert me["isVerified"] is True
    assert "passwordHash" not in me


def test_register_validation(client, sent_emails):
    response = client.post("/api/register", json={"email": unique_email()})
    assert response.status_code == 400
    assert response.json()["error"] == "All fields are required"

    response = _register(client, unique_email(), password="short")
    assert response.status_code == 400
    assert "at least 8" in response.json()["error"]

    email = unique_email("dup")
    assert _register(client, email).status_code == 200
    response = _register(client, email)
    assert response.status_code == 400
    assert response.json()["error"] == "Email already exists"


def test_verify_email_redirects_browsers(client, sent_emails):
    email = unique_email("browser")
    _register(client, email)
    token = sent_emails["verification"][-1][1]

    response = client.get(
        "/api/verify-email",
        params={"token": token},
        headers={"Accept": "text/html"},
        follow_redirects=False,
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/login?verified=1"


def test_verify_email_errors(client):
    assert client.get("/api/verify-email").json()["error"] == "Missing token"
    response = client.get("/api/verify-email", params={"token": "nope"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired token"


def test_login_errors(client, make_user, sent_emails):
    response = client.post("/api/login", json={"email": unique_email(), "password": "whatever1"})
    assert response.status_code == 400
    assert response.json()["error"] == "User not found. Please Sign Up."

    user = make_user()
    response = client.post("/api/login", json={"email": user.email, "password": "wrong-password"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid Password"


def test_admin_login_requires_master_key(client, make_user, sent_emails):
    response = client.post(
        "/api/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "type": "admin", "masterKey": "wrong"},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid credentials."

    user = make_user()
    response = client.post(
        "/api/login",
        json={"email": user.email, "password": DEFAULT_PASSWORD, "type": "admin", "masterKey": MASTER_KEY},
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Invalid credentials."

    response = client.post(
        "/api/login",
        json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "type": "admin", "masterKey": MASTER_KEY},
    )
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def _admin_login(client, master_key):
    payload = {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "type": "admin"}
    if master_key is not None:
        payload["masterKey"] = master_key
    return client.post("/api/login", json=payload)


def test_admin_login_rejects_blank_master_key(client, sent_emails):
    for master_key in ("", "   ", None):
        response = _admin_login(client, master_key)
        assert response.status_code == 403
        assert response.json()["error"] == "Invalid credentials."


def test_admin_login_unavailable_without_any_master_key(client, sent_emails, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_MASTER_KEY", None)
    monkeypatch.setattr(site_content, "get_content", lambda db: {"sitePassword": ""})

    response = _admin_login(client, MASTER_KEY)
    assert response.status_code == 500
    assert response.json()["error"] == "Admin login is unavailable."


def test_admin_login_falls_back_to_site_password(client, sent_emails, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_MASTER_KEY", None)
    monkeypatch.setattr(site_content, "get_content", lambda db: {"sitePassword": " document-key "})

    assert _admin_login(client, MASTER_KEY).status_code == 403
    response = _admin_login(client, "document-key")
    assert response.status_code == 200
    assert response.json()["role"] == "admin"


def test_auth_status_and_logout(client, make_user, sent_emails):
    assert client.get("/api/auth-status").json() == {
        "authenticated": False,
        "name": None,
        "email": None,
        "isAdmin": False,
    }

    user = make_user(name="Status Person")
    login_as(client, user.email)
    status = client.get("/api/auth-status").json()
    assert status["authenticated"] is True
    assert status["name"] == "Status Person"

    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/auth-status").json()["authenticated"] is False
    assert client.get("/api/me").status_code == 401


def test_forgot_and_reset_password(client, make_user, sent_emails):
    user = make_user()

    response = client.post("/api/forgot-password", json={"email": unique_email()})
    assert response.status_code == 200
    assert sent_emails["reset"] == []

    response = client.post("/api/forgot-password", json={"email": user.email})
    assert response.status_code == 200
    token = sent_emails["reset"][-1][1]

    response = client.post("/api/reset-password", json={"token": token, "password": "short"})
    assert response.status_code == 400

    response = client.post("/api/reset-password", json={"token": token, "password": "brand-new-password"})
    assert response.status_code == 200

    response = client.post("/api/reset-password", json={"token": token, "password": "another-password"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid or expired token."

    login_as(client, user.email, "brand-new-password")


def test_resend_verification_cooldown(client, sent_emails):
    email = unique_email("resend")
    _register(client, email)

    response = client.post("/api/resend-verification", json={"email": email})
    assert response.status_code == 429

    # Unknown addresses are not revealed
    response = client.post("/api/resend-verification", json={"email": unique_email()})
    assert response.status_code == 200


def test_account_update(user_client):
    client, user = user_client
    response = client.put("/api/account", json={"name": "Renamed", "bio": "Hello there"})
    assert response.status_code == 200

    account = client.get("/api/account").json()["account"]
    assert account["name"] == "Renamed"
    assert account["bio"] == "Hello there"

    response = client.put("/api/account", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "No updates provided"

    response = client.put("/api/account", json={"password": "short"})
    assert response.status_code == 400


def test_session_token_round_trip(make_user):
    user = make_user()
    claims = decode_session_token(create_session_token(user))
    assert claims is not None
    assert claims.user_id == user.id
    assert claims.is_admin is False

    assert decode_session_token(create_session_token(user, expires_in_seconds=-10)) is None
    assert decode_session_token("not-a-token") is None
