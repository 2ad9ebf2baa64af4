"""Tests for the admin console, user management and audit trail."""

from __future__ import annotations

import logging
import uuid

from conftest import login_as


def test_logs_and_console_clear(admin_client):
    marker = f"marker-{uuid.uuid4().hex}"
    logging.getLogger("portfolio.tests").warning(marker)

    logs = admin_client.get("/api/admin/logs").json()["logs"]
    assert any(marker in line and "[WARNING]" in line for line in logs)

    response = admin_client.post("/api/admin/console", json={"command": "clear"})
    assert response.json() == {"success": True, "message": "Logs cleared."}
    logs = admin_client.get("/api/admin/logs").json()["logs"]
    assert not any(marker in line for line in logs)

    response = admin_client.post("/api/admin/console", json={"command": "rm -rf /"})
    assert response.json() == {"success": False, "error": "Unknown command"}


def test_list_users_hides_password_hashes(admin_client, make_user):
    user = make_user()
    users = admin_client.get("/api/admin/users").json()["users"]
    listed = next(item for item in users if item["id"] == user.id)
    assert listed["email"] == user.email
    assert "passwordHash" not in listed
    assert "password_hash" not in listed


def test_update_user(admin_client, make_user):
    user = make_user()
    new_email = f"renamed-{uuid.uuid4().hex[:8]}@example.com"
    response = admin_client.post(
        "/api/admin/users/update",
        json={
            "userId": user.id,
            "updates": {"name": "Edited", "email": new_email.upper(), "id": 12345, "isAdmin": True},
        },
    )
    assert response.status_code == 200

    users = admin_client.get("/api/admin/users").json()["users"]
    listed = next(item for item in users if item["id"] == user.id)
    assert listed["name"] == "Edited"
    assert listed["email"] == new_email
    assert listed["isAdmin"] is True

    entries = admin_client.get("/api/admin/audit-log").json()["items"]
    assert any(entry["action"] == "update_user" and entry["targetId"] == str(user.id) for entry in entries)


def test_update_user_errors(admin_client, make_user):
    response = admin_client.post("/api/admin/users/update", json={"updates": {"name": "x"}})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing userId or updates"

    response = admin_client.post("/api/admin/users/update", json={"userId": 999999, "updates": {"name": "x"}})
    assert response.status_code == 404

    user = make_user()
    response = admin_client.post(
        "/api/admin/users/update", json={"userId": user.id, "updates": {"unknownField": "x"}}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "No updates provided"


def test_admin_password_change_lets_user_sign_in(admin_client, make_user, sent_emails):
    user = make_user()
    response = admin_client.post(
        "/api/admin/users/update", json={"userId": user.id, "updates": {"password": "set-by-admin"}}
    )
    assert response.status_code == 200

    admin_client.post("/api/logout")
    login_as(admin_client, user.email, "set-by-admin")


def test_admin_endpoints_reject_users(user_client):
    client, _user = user_client
    for path in ("/api/admin/logs", "/api/admin/users", "/api/admin/audit-log"):
        response = client.get(path)
        assert response.status_code == 403
        assert response.json()["error"] == "Admin only"


def test_update_user_flags_need_real_booleans(admin_client, make_user):
    user = make_user(is_admin=True)
    response = admin_client.post(
        "/api/admin/users/update", json={"userId": user.id, "updates": {"isAdmin": "false"}}
    )
    assert response.status_code == 200

    users = admin_client.get("/api/admin/users").json()["users"]
    assert next(item for item in users if item["id"] == user.id)["isAdmin"] is False

    response = admin_client.post(
        "/api/admin/users/update", json={"userId": user.id, "updates": {"isAdmin": "yes", "isVerified": 1}}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "No updates provided"
