"""Tests for public profiles and the follow graph."""

from __future__ import annotations

from conftest import login_as


def test_public_profile(client, make_user):
    user = make_user(name="Visible Person")
    response = client.get(f"/api/users/{user.id}")
    assert response.status_code == 200
    profile = response.json()["user"]
    assert profile["name"] == "Visible Person"
    assert profile["followersCount"] == 0
    assert "email" not in profile

    response = client.get("/api/users/999999")
    assert response.status_code == 404
    assert response.json()["error"] == "User not found"


def test_profile_update_owner_only(client, make_user, sent_emails):
    owner = make_user()
    other = make_user()

    login_as(client, other.email)
    response = client.patch(f"/api/users/{owner.id}", json={"bio": "hijacked"})
    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"

    login_as(client, owner.email)
    response = client.patch(f"/api/users/{owner.id}", json={"bio": "my bio"})
    assert response.status_code == 200
    assert response.json()["user"]["bio"] == "my bio"


def test_follow_and_unfollow_keep_counts(client, make_user, sent_emails):
    follower = make_user()
    target = make_user()
    login_as(client, follower.email)

    assert client.post(f"/api/follow/{target.id}").status_code == 200
    assert client.get(f"/api/users/{target.id}/is-following").json()["isFollowing"] is True
    assert client.get(f"/api/users/{target.id}").json()["user"]["followersCount"] == 1
    assert client.get(f"/api/users/{follower.id}").json()["user"]["followingCount"] == 1

    response = client.post(f"/api/follow/{target.id}")
    assert response.status_code == 400
    assert response.json()["error"] == "Already following"

    followers = client.get(f"/api/users/{target.id}/followers").json()
    assert followers["total"] == 1
    assert followers["limit"] == 20
    assert followers["items"][0]["id"] == follower.id

    following = client.get(f"/api/users/{follower.id}/following").json()
    assert [item["id"] for item in following["items"]] == [target.id]

    assert client.delete(f"/api/follow/{target.id}").status_code == 200
    # A second unfollow is a no-op and must not push counters negative
    assert client.delete(f"/api/follow/{target.id}").status_code == 200
    assert client.get(f"/api/users/{target.id}").json()["user"]["followersCount"] == 0
    assert client.get(f"/api/users/{follower.id}").json()["user"]["followingCount"] == 0
    assert client.get(f"/api/users/{target.id}/is-following").json()["isFollowing"] is False


def test_follow_rejections(client, make_user, sent_emails):
    user = make_user()
    login_as(client, user.email)

    response = client.post(f"/api/follow/{user.id}")
    assert response.status_code == 400
    assert response.json()["error"] == "Cannot follow yourself"

    assert client.post("/api/follow/999999").status_code == 404


def test_follow_requires_login(client, make_user):
    target = make_user()
    response = client.post(f"/api/follow/{target.id}")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Not authenticated"}


def test_follow_list_page_size_is_capped(client, make_user):
    user = make_user()
    body = client.get(f"/api/users/{user.id}/followers", params={"limit": 500, "page": 0}).json()
    assert body["limit"] == 50
    assert body["page"] == 1
    assert body["items"] == []
