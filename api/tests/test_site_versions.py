"""Tests for the draft/publish/rollback workflow."""

from __future__ import annotations

import uuid

from conftest import ADMIN_TOKEN

from portfolio import models, settings
from portfolio.services import site_content

AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}


def _set_headline(client, headline: str) -> dict:
    draft = client.get("/api/site/draft", headers=AUTH).json()["data"]
    hero = dict(draft["hero"], headline=headline)
    response = client.patch("/api/site/draft", json={"hero": hero}, headers=AUTH)
    assert response.status_code == 200, response.text
    return response.json()


def test_access_control(user_client):
    logged_in, _user = user_client
    assert logged_in.get("/api/site/draft").status_code == 403

    logged_in.post("/api/logout")
    response = logged_in.get("/api/site/draft")
    assert response.status_code == 401
    assert response.json()["error"] == "Not authenticated"

    response = logged_in.get("/api/site/draft", headers={"Authorization": "Bearer wrong-token"})
    assert response.status_code == 403

    assert logged_in.get("/api/site/draft", headers=AUTH).status_code == 200


def test_admin_session_can_edit(admin_client):
    body = admin_client.get("/api/site/draft").json()
    assert body["success"] is True
    assert "site" in body["data"]


def test_patch_draft_reports_changed_keys(client):
    headline = f"Headline {uuid.uuid4().hex[:6]}"
    body = _set_headline(client, headline)
    assert body["changed"] == ["hero"]
    assert body["data"]["hero"]["headline"] == headline

    again = client.patch("/api/site/draft", json={"hero": body["data"]["hero"]}, headers=AUTH).json()
    assert again["changed"] == []


def test_put_draft_normalizes_legacy_documents(client):
    legacy = {"hero": {"titlePrefix": "Legacy ", "titleSuffix": "Name", "subtitle": "Old subtitle"}}
    response = client.put("/api/site/draft", json=legacy, headers=AUTH)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hero"]["headline"] == "Legacy Name"
    assert data["hero"]["subheadline"] == "Old subtitle"
    assert "sections" in data and "footer" in data


def test_publish_and_read_published(client):
    headline = f"Live {uuid.uuid4().hex[:6]}"
    _set_headline(client, headline)

    response = client.post("/api/site/publish", headers=AUTH)
    assert response.status_code == 200
    version = response.json()["version"]

    published = client.get("/api/site/published").json()
    assert published["hero"]["headline"] == headline
    assert "sitePassword" not in published

    history = client.get("/api/site/history", headers=AUTH).json()["history"]
    assert history[0]["version"] == version
    assert history[0]["isActive"] is True
    assert all(not item["isActive"] for item in history[1:])


def test_rollback_republishes_and_resets_draft(client):
    first = f"First {uuid.uuid4().hex[:6]}"
    _set_headline(client, first)
    first_version = client.post("/api/site/publish", headers=AUTH).json()["version"]

    _set_headline(client, "Second")
    client.post("/api/site/publish", headers=AUTH)

    response = client.post(f"/api/site/rollback/{first_version}", headers=AUTH)
    assert response.status_code == 200
    restored_version = response.json()["version"]
    assert restored_version > first_version

    assert client.get("/api/site/published").json()["hero"]["headline"] == first
    assert client.get("/api/site/draft", headers=AUTH).json()["data"]["hero"]["headline"] == first


def test_rollback_unknown_version(client):
    response = client.post("/api/site/rollback/987654", headers=AUTH)
    assert response.status_code == 404
    assert response.json()["error"] == "Version not found"


def test_history_is_pruned_and_single_active(client, db):
    for index in range(settings.SITE_HISTORY_LIMIT + 2):
        _set_headline(client, f"Prune {index}")
        assert client.post("/api/site/publish", headers=AUTH).status_code == 200

    history = client.get("/api/site/history", headers=AUTH).json()["history"]
    assert len(history) == settings.SITE_HISTORY_LIMIT
    versions = [item["version"] for item in history]
    assert versions == sorted(versions, reverse=True)

    for version_status in (site_content.DRAFT, site_content.PUBLISHED):
        active = (
            db.query(models.SiteVersion)
            .filter(models.SiteVersion.status == version_status, models.SiteVersion.is_active.is_(True))
            .count()
        )
        assert active == 1


def test_draft_and_published_versions_are_distinct(db):
    draft = site_content.get_or_create_draft(db)
    published = site_content.get_active(db, site_content.PUBLISHED)
    if published is not None:
        assert draft.version != published.version


def test_publish_audited(client, db):
    client.post("/api/site/publish", headers=AUTH)
    entry = (
        db.query(models.AuditLog)
        .filter(models.AuditLog.action == "publish_site")
        .order_by(models.AuditLog.id.desc())
        .first()
    )
    assert entry is not None
    # Token callers have no user id
    assert entry.actor_id is None
