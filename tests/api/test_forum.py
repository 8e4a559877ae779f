from datetime import datetime, timedelta

import pytest

from factories import auth_headers
from fitstat.models import ForumPost


def make_post(db, author, title="Best warm-up?", **fields):
    values = {
        "content": "What do you do before a heavy session?",
        "category": "Training",
        "tags": ["warmup"],
    }
    values.update(fields)
    post = ForumPost(
        title=title, author_name=author.name, author_email=author.email, **values
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


@pytest.mark.asyncio
async def test_create_post_uses_account_details(api_client, member):
    resp = await api_client.post(
        "/api/forums",
        json={
            "title": "  Protein timing ",
            "content": "<script>alert(1)</script>Does it <b>matter</b>?",
            "tags": ["Nutrition", "nutrition", " Diet "],
        },
        headers=auth_headers(member),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["title"] == "Protein timing"
    assert "<script>" not in body["content"]
    assert "<b>" not in body["content"]
    assert body["category"] == "General"
    assert body["tags"] == ["nutrition", "diet"]
    assert body["author_email"] == member.email
    assert body["author_name"] == "Mia Member"
    assert body["vote_count"] == 0


@pytest.mark.asyncio
async def test_create_post_requires_login(api_client):
    resp = await api_client.post("/api/forums", json={"title": "Hi", "content": "Hello"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_list_posts_pins_first_and_paginates(api_client, db_session, member):
    for i in range(7):
        make_post(db_session, member, title=f"Post {i}")
    pinned = make_post(db_session, member, title="House rules", is_pinned=True)
    make_post(db_session, member, title="Removed", is_active=False)

    resp = await api_client.get("/api/forums")
    body = resp.json()
    assert body["posts"][0]["id"] == pinned.id
    assert len(body["posts"]) == 6
    assert body["pagination"]["totalItems"] == 8
    assert body["pagination"]["hasNext"] is True


@pytest.mark.asyncio
async def test_list_posts_filters(api_client, db_session, member, other_member):
    make_post(db_session, member, title="Squat depth", category="Strength")
    make_post(db_session, other_member, title="Marathon prep", category="Running", tags=["endurance"])

    resp = await api_client.get("/api/forums", params={"category": "running"})
    assert [p["title"] for p in resp.json()["posts"]] == ["Marathon prep"]

    resp = await api_client.get("/api/forums", params={"author": member.email})
    assert [p["title"] for p in resp.json()["posts"]] == ["Squat depth"]

    resp = await api_client.get("/api/forums/search", params={"q": "endurance"})
    assert [p["title"] for p in resp.json()["posts"]] == ["Marathon prep"]


@pytest.mark.asyncio
async def test_viewing_a_post_counts_the_view(api_client, db_session, member):
    post = make_post(db_session, member)

    await api_client.get(f"/api/forums/{post.id}")
    resp = await api_client.get(f"/api/forums/{post.id}")

    assert resp.status_code == 200
    assert resp.json()["view_count"] == 2


@pytest.mark.asyncio
async def test_votes_move_both_ways(api_client, db_session, member):
    post = make_post(db_session, member)

    await api_client.patch(f"/api/forums/{post.id}/upvote")
    await api_client.patch(f"/api/forums/{post.id}/upvote")
    resp = await api_client.patch(f"/api/forums/{post.id}/downvote")
    assert resp.json()["vote_count"] == 1

    resp = await api_client.patch("/api/forums/999/upvote")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_only_author_edits(api_client, db_session, member, other_member, admin):
    post = make_post(db_session, member)

    resp = await api_client.patch(
        f"/api/forums/{post.id}", json={"title": "Hijacked"}, headers=auth_headers(other_member)
    )
    assert resp.status_code == 403

    resp = await api_client.patch(
        f"/api/forums/{post.id}", json={"title": "Hijacked"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 403

    resp = await api_client.patch(
        f"/api/forums/{post.id}", json={"title": "Updated title"}, headers=auth_headers(member)
    )
    assert resp.status_code == 200
    assert resp.json()["title"] == "Updated title"
    assert resp.json()["content"] == post.content


@pytest.mark.asyncio
async def test_delete_by_author_or_admin(api_client, db_session, member, other_member, admin):
    mine = make_post(db_session, member, title="Mine")
    moderated = make_post(db_session, member, title="Moderated")

    resp = await api_client.delete(f"/api/forums/{mine.id}", headers=auth_headers(other_member))
    assert resp.status_code == 403

    resp = await api_client.delete(f"/api/forums/{mine.id}", headers=auth_headers(member))
    assert resp.status_code == 200

    resp = await api_client.delete(f"/api/forums/{moderated.id}", headers=auth_headers(admin))
    assert resp.status_code == 200

    resp = await api_client.get(f"/api/forums/{mine.id}")
    assert resp.status_code == 404
    assert db_session.query(ForumPost).count() == 2


@pytest.mark.asyncio
async def test_pin_is_admin_only(api_client, db_session, member, admin):
    post = make_post(db_session, member)

    resp = await api_client.patch(f"/api/forums/{post.id}/pin", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.patch(f"/api/forums/{post.id}/pin", headers=auth_headers(admin))
    assert resp.json()["is_pinned"] is True

    resp = await api_client.patch(f"/api/forums/{post.id}/unpin", headers=auth_headers(admin))
    assert resp.json()["is_pinned"] is False


@pytest.mark.asyncio
async def test_latest_and_trending(api_client, db_session, member):
    make_post(db_session, member, title="Old favourite", vote_count=50, created_at=datetime.utcnow() - timedelta(days=30))
    make_post(db_session, member, title="Fresh hit", vote_count=10)
    make_post(db_session, member, title="Fresh quiet", vote_count=1)

    resp = await api_client.get("/api/forums/latest", params={"limit": 2})
    assert [p["title"] for p in resp.json()] == ["Old favourite", "Fresh hit"]

    resp = await api_client.get("/api/forums/trending")
    assert [p["title"] for p in resp.json()] == ["Fresh hit", "Fresh quiet"]


@pytest.mark.asyncio
async def test_categories_and_stats(api_client, db_session, member, admin):
    make_post(db_session, member, title="A", category="Training", vote_count=3, view_count=10)
    make_post(db_session, member, title="B", category="Training", vote_count=2)
    make_post(db_session, member, title="C", category="Nutrition", is_pinned=True)

    resp = await api_client.get("/api/forums/categories")
    body = resp.json()
    assert [c["category"] for c in body] == ["Training", "Nutrition"]
    assert body[0]["total_votes"] == 5
    assert body[0]["total_views"] == 10

    resp = await api_client.get("/api/forums/admin/stats", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.get("/api/forums/admin/stats", headers=auth_headers(admin))
    overview = resp.json()["overview"]
    assert overview["total_posts"] == 3
    assert overview["total_votes"] == 5
    assert overview["pinned_posts"] == 1
