import pytest

from factories import auth_headers, make_class
from fitstat.models import FitnessClass

NEW_CLASS = {
    "name": "Power Spin",
    "description": "<b>High energy</b> cycling intervals",
    "image": "https://example.com/spin.jpg",
    "price": 30,
    "duration": 45,
    "difficulty": "Advanced",
    "category": "Cardio",
    "maxCapacity": 12,
}


@pytest.mark.asyncio
async def test_trainer_creates_class(api_client, trainer):
    resp = await api_client.post("/api/classes", json=NEW_CLASS, headers=auth_headers(trainer))

    assert resp.status_code == 201
    body = resp.json()
    assert body["name"] == "Power Spin"
    assert body["description"] == "High energy cycling intervals"
    assert body["max_capacity"] == 12
    assert body["booking_count"] == 0
    assert body["is_active"] is True


@pytest.mark.asyncio
async def test_member_cannot_create_class(api_client, member):
    resp = await api_client.post("/api/classes", json=NEW_CLASS, headers=auth_headers(member))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_create_class_requires_token(api_client):
    resp = await api_client.post("/api/classes", json=NEW_CLASS)
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_class_rejects_duplicate_name(api_client, trainer, yoga_class):
    payload = {**NEW_CLASS, "name": "morning yoga"}
    resp = await api_client.post("/api/classes", json=payload, headers=auth_headers(trainer))
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_create_class_validation_errors(api_client, admin):
    payload = {**NEW_CLASS, "difficulty": "Extreme", "image": "not-a-url"}
    resp = await api_client.post("/api/classes", json=payload, headers=auth_headers(admin))

    assert resp.status_code == 400
    body = resp.json()
    assert body["detail"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"difficulty", "image"} <= fields


@pytest.mark.asyncio
async def test_list_classes_paginates_and_filters(api_client, db_session):
    for i in range(7):
        make_class(db_session, name=f"Yoga {i}")
    make_class(db_session, name="Boxing Basics", category="Combat", difficulty="Intermediate")
    make_class(db_session, name="Retired Class", is_active=False)

    resp = await api_client.get("/api/classes", params={"page": 2, "limit": 6})
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["classes"]) == 2
    assert body["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalItems": 8,
        "limit": 6,
        "hasNext": False,
        "hasPrev": True,
    }

    resp = await api_client.get("/api/classes", params={"category": "combat"})
    assert [c["name"] for c in resp.json()["classes"]] == ["Boxing Basics"]

    resp = await api_client.get("/api/classes", params={"difficulty": "Intermediate"})
    assert resp.json()["pagination"]["totalItems"] == 1


@pytest.mark.asyncio
async def test_list_classes_sorts_by_price(api_client, db_session):
    make_class(db_session, name="Cheap", price=5)
    make_class(db_session, name="Pricey", price=80)
    make_class(db_session, name="Middle", price=20)

    resp = await api_client.get("/api/classes", params={"sortBy": "price", "sortOrder": "asc"})
    assert [c["name"] for c in resp.json()["classes"]] == ["Cheap", "Middle", "Pricey"]


@pytest.mark.asyncio
async def test_search_matches_name_and_description(api_client, db_session):
    make_class(db_session, name="Core Burn", description="Abs and obliques")
    make_class(db_session, name="Stretch", description="Slow core mobility")
    make_class(db_session, name="Sprint", description="Track intervals")

    resp = await api_client.get("/api/classes/search", params={"q": "core"})
    assert resp.status_code == 200
    assert [c["name"] for c in resp.json()["classes"]] == ["Core Burn", "Stretch"]


@pytest.mark.asyncio
async def test_categories_group_active_classes(api_client, db_session):
    make_class(db_session, name="Flow", category="Yoga")
    make_class(db_session, name="Yin", category="Yoga")
    make_class(db_session, name="HIIT", category="Cardio")

    resp = await api_client.get("/api/classes/categories")
    body = resp.json()
    assert [c["category"] for c in body] == ["Yoga", "Cardio"]
    assert body[0]["count"] == 2


@pytest.mark.asyncio
async def test_popular_classes_ordered_by_bookings(api_client, db_session):
    make_class(db_session, name="Quiet", booking_count=1)
    make_class(db_session, name="Busy", booking_count=9)

    resp = await api_client.get("/api/classes/popular", params={"limit": 1})
    assert [c["name"] for c in resp.json()] == ["Busy"]


@pytest.mark.asyncio
async def test_get_unknown_class_returns_404(api_client):
    resp = await api_client.get("/api/classes/999")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Class not found"


@pytest.mark.asyncio
async def test_update_class_cannot_drop_capacity_below_bookings(api_client, db_session, trainer):
    fitness_class = make_class(db_session, booking_count=5, max_capacity=10)

    resp = await api_client.patch(
        f"/api/classes/{fitness_class.id}", json={"maxCapacity": 3}, headers=auth_headers(trainer)
    )
    assert resp.status_code == 400

    resp = await api_client.patch(
        f"/api/classes/{fitness_class.id}",
        json={"maxCapacity": 8, "price": 40},
        headers=auth_headers(trainer),
    )
    assert resp.status_code == 200
    assert resp.json()["max_capacity"] == 8
    assert resp.json()["price"] == 40


@pytest.mark.asyncio
async def test_delete_class_is_soft_and_admin_only(api_client, db_session, trainer, admin, yoga_class):
    resp = await api_client.delete(f"/api/classes/{yoga_class.id}", headers=auth_headers(trainer))
    assert resp.status_code == 403

    resp = await api_client.delete(f"/api/classes/{yoga_class.id}", headers=auth_headers(admin))
    assert resp.status_code == 200

    resp = await api_client.get(f"/api/classes/{yoga_class.id}")
    assert resp.status_code == 404

    db_session.expire_all()
    assert db_session.get(FitnessClass, yoga_class.id).is_active is False


@pytest.mark.asyncio
async def test_validate_capacity(api_client, db_session):
    fitness_class = make_class(db_session, booking_count=8, max_capacity=10)

    resp = await api_client.get(
        f"/api/classes/{fitness_class.id}/validate-capacity", params={"requested": 2}
    )
    assert resp.status_code == 200
    assert resp.json()["remaining"] == 2

    resp = await api_client.get(
        f"/api/classes/{fitness_class.id}/validate-capacity", params={"requested": 3}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Class is fully booked"


@pytest.mark.asyncio
async def test_booking_stops_at_capacity(api_client, db_session, member):
    fitness_class = make_class(db_session, max_capacity=1)

    first = await api_client.patch(
        f"/api/classes/{fitness_class.id}/book", headers=auth_headers(member)
    )
    assert first.status_code == 200
    assert first.json()["booking_count"] == 1

    second = await api_client.patch(
        f"/api/classes/{fitness_class.id}/book", headers=auth_headers(member)
    )
    assert second.status_code == 400
    assert second.json()["detail"] == "Class is fully booked"

    db_session.expire_all()
    assert db_session.get(FitnessClass, fitness_class.id).booking_count == 1


@pytest.mark.asyncio
async def test_class_stats_admin_only(api_client, db_session, member, admin):
    make_class(db_session, name="A", difficulty="Beginner")
    make_class(db_session, name="B", difficulty="Advanced", is_active=False)

    resp = await api_client.get("/api/classes/admin/stats", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.get("/api/classes/admin/stats", headers=auth_headers(admin))
    assert resp.status_code == 200
    overview = resp.json()["overview"]
    assert overview["total_classes"] == 2
    assert overview["active_classes"] == 1
