import pytest

from factories import auth_headers, make_class
from fitstat.models import Review


def make_review(db, user, rating=5, fitness_class=None, trainer_email=None, **fields):
    review = Review(
        user_email=user.email,
        user_name=user.name,
        rating=rating,
        comment=fields.pop("comment", "Solid session, would come again"),
        class_id=fitness_class.id if fitness_class else None,
        trainer_email=trainer_email,
        **fields,
    )
    db.add(review)
    db.commit()
    db.refresh(review)
    return review


@pytest.mark.asyncio
async def test_create_class_review(api_client, member, yoga_class):
    resp = await api_client.post(
        "/api/reviews",
        json={"rating": 4, "comment": "Great <em>pace</em> and clear cues", "classId": yoga_class.id},
        headers=auth_headers(member),
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["user_email"] == member.email
    assert body["rating"] == 4
    assert body["is_verified"] is False
    assert body["fitness_class"]["name"] == "Morning Yoga"


@pytest.mark.asyncio
async def test_review_needs_a_target(api_client, member):
    resp = await api_client.post(
        "/api/reviews", json={"rating": 4, "comment": "Nice place overall"}, headers=auth_headers(member)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Either classId or trainerEmail must be provided"


@pytest.mark.asyncio
async def test_review_of_unknown_class(api_client, member):
    resp = await api_client.post(
        "/api/reviews",
        json={"rating": 4, "comment": "Nice place overall", "classId": 404},
        headers=auth_headers(member),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_review_validation(api_client, member, yoga_class):
    resp = await api_client.post(
        "/api/reviews",
        json={"rating": 6, "comment": "short", "classId": yoga_class.id},
        headers=auth_headers(member),
    )
    assert resp.status_code == 400
    fields = {error["field"] for error in resp.json()["errors"]}
    assert fields == {"rating", "comment"}


@pytest.mark.asyncio
async def test_one_review_per_target(api_client, db_session, member, other_member, trainer, yoga_class):
    make_review(db_session, member, fitness_class=yoga_class)
    make_review(db_session, member, trainer_email=trainer.email)

    again = await api_client.post(
        "/api/reviews",
        json={"rating": 3, "comment": "Second thoughts here", "classId": yoga_class.id},
        headers=auth_headers(member),
    )
    assert again.status_code == 409

    again = await api_client.post(
        "/api/reviews",
        json={"rating": 3, "comment": "Second thoughts here", "trainerEmail": trainer.email.upper()},
        headers=auth_headers(member),
    )
    assert again.status_code == 409

    someone_else = await api_client.post(
        "/api/reviews",
        json={"rating": 3, "comment": "Different person here", "classId": yoga_class.id},
        headers=auth_headers(other_member),
    )
    assert someone_else.status_code == 201


@pytest.mark.asyncio
async def test_class_reviews_and_summary(api_client, db_session, member, other_member, admin, yoga_class):
    make_review(db_session, member, rating=5, fitness_class=yoga_class)
    make_review(db_session, other_member, rating=4, fitness_class=yoga_class)
    make_review(db_session, admin, rating=1, fitness_class=yoga_class, is_visible=False)

    resp = await api_client.get(f"/api/reviews/class/{yoga_class.id}")
    body = resp.json()
    assert body["class_rating"] == {"average": 4.5, "total": 2}
    assert body["pagination"]["totalItems"] == 2

    resp = await api_client.get(f"/api/reviews/class/{yoga_class.id}/summary")
    summary = resp.json()
    assert summary["total_reviews"] == 2
    assert summary["average_rating"] == 4.5
    assert summary["rating_breakdown"] == {"5": 1, "4": 1, "3": 0, "2": 0, "1": 0}
    assert summary["percentage_breakdown"]["5"] == 50


@pytest.mark.asyncio
async def test_trainer_reviews(api_client, db_session, member, other_member, trainer):
    make_review(db_session, member, rating=5, trainer_email=trainer.email)
    make_review(db_session, other_member, rating=2, trainer_email=trainer.email)

    resp = await api_client.get(f"/api/reviews/trainer/{trainer.email.upper()}")
    body = resp.json()
    assert body["trainer_rating"] == {"average": 3.5, "total": 2}
    assert len(body["reviews"]) == 2

    resp = await api_client.get(f"/api/reviews/trainer/{trainer.email}", params={"rating": 2})
    assert [r["rating"] for r in resp.json()["reviews"]] == [2]


@pytest.mark.asyncio
async def test_top_and_featured(api_client, db_session, member, other_member, admin, yoga_class):
    make_review(db_session, member, rating=5, fitness_class=yoga_class, is_verified=True)
    make_review(db_session, other_member, rating=4, fitness_class=yoga_class)
    make_review(db_session, admin, rating=2, fitness_class=yoga_class, is_verified=True)

    resp = await api_client.get("/api/reviews/top")
    assert [r["rating"] for r in resp.json()] == [5, 4]

    resp = await api_client.get("/api/reviews/featured")
    assert [r["user_email"] for r in resp.json()] == [member.email]


@pytest.mark.asyncio
async def test_my_reviews(api_client, db_session, member, other_member, trainer, yoga_class):
    make_review(db_session, member, fitness_class=yoga_class)
    latest = make_review(db_session, member, trainer_email=trainer.email)
    make_review(db_session, other_member, fitness_class=yoga_class)

    resp = await api_client.get("/api/reviews/user/my-reviews", headers=auth_headers(member))
    assert len(resp.json()) == 2

    resp = await api_client.get("/api/reviews/user/latest", headers=auth_headers(member))
    assert resp.json()["id"] == latest.id


@pytest.mark.asyncio
async def test_update_and_delete_ownership(api_client, db_session, member, other_member, admin, yoga_class):
    review = make_review(db_session, member, rating=3, fitness_class=yoga_class)

    resp = await api_client.patch(
        f"/api/reviews/{review.id}", json={"rating": 1}, headers=auth_headers(other_member)
    )
    assert resp.status_code == 403

    resp = await api_client.patch(
        f"/api/reviews/{review.id}", json={"rating": 4}, headers=auth_headers(member)
    )
    assert resp.status_code == 200
    assert resp.json()["rating"] == 4
    assert resp.json()["comment"] == review.comment

    resp = await api_client.delete(f"/api/reviews/{review.id}", headers=auth_headers(other_member))
    assert resp.status_code == 403

    resp = await api_client.delete(f"/api/reviews/{review.id}", headers=auth_headers(admin))
    assert resp.status_code == 200
    assert db_session.query(Review).count() == 0


@pytest.mark.asyncio
async def test_moderation(api_client, db_session, member, other_member, admin, yoga_class):
    first = make_review(db_session, member, fitness_class=yoga_class)
    second = make_review(db_session, other_member, fitness_class=yoga_class)

    resp = await api_client.patch(f"/api/reviews/{first.id}/verify", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.patch(f"/api/reviews/{first.id}/hide", headers=auth_headers(admin))
    assert resp.json()["is_visible"] is False

    resp = await api_client.get("/api/reviews")
    assert [r["id"] for r in resp.json()["reviews"]] == [second.id]

    resp = await api_client.patch(f"/api/reviews/{first.id}/show", headers=auth_headers(admin))
    assert resp.json()["is_visible"] is True

    resp = await api_client.post(
        "/api/reviews/bulk/verify",
        json={"reviewIds": [first.id, second.id, 999]},
        headers=auth_headers(admin),
    )
    assert resp.json()["modified_count"] == 2

    db_session.expire_all()
    assert all(r.is_verified for r in db_session.query(Review).all())


@pytest.mark.asyncio
async def test_review_stats(api_client, db_session, member, other_member, admin):
    spin = make_class(db_session, name="Spin")
    make_review(db_session, member, rating=5, fitness_class=spin)
    make_review(db_session, other_member, rating=3, fitness_class=spin)

    resp = await api_client.get("/api/reviews/admin/stats", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["overview"]["total_reviews"] == 2
    assert {"rating": 5, "count": 1} in body["rating_distribution"]
    assert len(body["monthly_trends"]) == 6
    assert body["monthly_trends"][-1]["count"] == 2
    assert body["monthly_trends"][-1]["average_rating"] == 4.0
    assert body["top_reviewed_classes"][0]["class_name"] == "Spin"
