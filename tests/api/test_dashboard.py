import pytest
import redis

from factories import auth_headers, make_class, make_payment, make_user
from fitstat import rate_limiter
from fitstat.domain.payments.gateway import stripe_gateway
from fitstat.models import Review

ADMIN_ROUTES = [
    "/api/dashboard/stats",
    "/api/dashboard/analytics",
    "/api/dashboard/user-engagement",
    "/api/dashboard/revenue/category",
    "/api/dashboard/trainer-performance",
    "/api/dashboard/popular-slots",
    "/api/dashboard/system-health",
    "/api/dashboard/recent-activity",
    "/api/dashboard/top-classes",
]


@pytest.fixture
def bookings(db_session, member, other_member, trainer):
    yoga = make_class(db_session, name="Morning Yoga", category="Yoga", booking_count=2)
    spin = make_class(db_session, name="Spin", category="Cardio", booking_count=5)
    make_payment(db_session, member, yoga, intent_id="pi_1", package_price=20, slot_name="Morning")
    make_payment(db_session, other_member, yoga, intent_id="pi_2", package_price=20, slot_name="Morning")
    make_payment(db_session, member, spin, intent_id="pi_3", package_price=50, slot_name="Evening")
    make_payment(
        db_session, other_member, spin, intent_id="pi_4", package_price=50, payment_status="refunded"
    )
    db_session.add(
        Review(
            user_email=member.email,
            user_name=member.name,
            rating=4,
            comment="Clear and motivating coach",
            trainer_email=trainer.email,
        )
    )
    db_session.commit()
    return {"yoga": yoga, "spin": spin}


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ADMIN_ROUTES)
async def test_dashboard_is_admin_only(api_client, member, path):
    resp = await api_client.get(path)
    assert resp.status_code == 401

    resp = await api_client.get(path, headers=auth_headers(member))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_dashboard_stats(api_client, admin, bookings):
    resp = await api_client.get("/api/dashboard/stats", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    overview = body["overview"]
    assert overview["total_users"] == 4
    assert overview["total_members"] == 2
    assert overview["total_trainers"] == 1
    assert overview["total_bookings"] == 4
    assert overview["total_revenue"] == 90
    assert overview["paid_members"] == 2
    assert overview["total_classes"] == 2
    assert overview["total_reviews"] == 1

    assert len(body["recent_activity"]["transactions"]) == 4
    assert body["insights"]["top_classes"][0]["name"] == "Spin"
    assert len(body["insights"]["monthly_revenue"]) == 12
    assert body["insights"]["monthly_revenue"][-1]["revenue"] == 90
    assert body["insights"]["user_growth"][-1]["new_users"] == 4


@pytest.mark.asyncio
async def test_user_engagement(api_client, db_session, admin, bookings):
    make_user(db_session, "lurker@fitstat.test")

    resp = await api_client.get("/api/dashboard/user-engagement", headers=auth_headers(admin))

    body = resp.json()
    assert body["total_members"] == 3
    assert body["paying_members"] == 2
    assert body["reviewing_members"] == 1
    assert body["engagement_rate"] == 66.67


@pytest.mark.asyncio
async def test_revenue_by_category(api_client, admin, bookings):
    resp = await api_client.get("/api/dashboard/revenue/category", headers=auth_headers(admin))

    assert resp.json() == [
        {"category": "Cardio", "total_revenue": 50.0, "booking_count": 1, "average_price": 50.0},
        {"category": "Yoga", "total_revenue": 40.0, "booking_count": 2, "average_price": 20.0},
    ]


@pytest.mark.asyncio
async def test_trainer_performance_includes_ratings(api_client, admin, trainer, bookings):
    resp = await api_client.get("/api/dashboard/trainer-performance", headers=auth_headers(admin))

    [row] = resp.json()
    assert row["trainer_email"] == trainer.email
    assert row["total_bookings"] == 3
    assert row["total_revenue"] == 90
    assert row["average_rating"] == 4
    assert row["total_reviews"] == 1


@pytest.mark.asyncio
async def test_popular_slots(api_client, admin, bookings):
    resp = await api_client.get("/api/dashboard/popular-slots", headers=auth_headers(admin))

    assert [(s["slot_name"], s["booking_count"]) for s in resp.json()] == [("Morning", 2), ("Evening", 1)]


@pytest.mark.asyncio
async def test_recent_activity_and_top_classes_limits(api_client, admin, bookings):
    resp = await api_client.get(
        "/api/dashboard/recent-activity", params={"limit": 2}, headers=auth_headers(admin)
    )
    body = resp.json()
    assert len(body["transactions"]) == 2
    assert len(body["users"]) == 2

    resp = await api_client.get(
        "/api/dashboard/top-classes", params={"limit": 1}, headers=auth_headers(admin)
    )
    assert [c["name"] for c in resp.json()] == ["Spin"]

    resp = await api_client.get(
        "/api/dashboard/recent-activity", params={"limit": 500}, headers=auth_headers(admin)
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_system_health(api_client, admin):
    resp = await api_client.get("/api/dashboard/system-health", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"]["connected"] is True
    assert body["redis"]["connected"] is True
    assert "formatted" in body["uptime"]


@pytest.mark.asyncio
async def test_system_health_reports_degraded_redis(api_client, admin, monkeypatch):
    def broken_ping():
        raise redis.ConnectionError("connection refused")

    monkeypatch.setattr(rate_limiter.redis_client, "ping", broken_ping)

    resp = await api_client.get("/api/dashboard/system-health", headers=auth_headers(admin))
    body = resp.json()
    assert body["status"] == "degraded"
    assert body["redis"]["connected"] is False


@pytest.mark.asyncio
@pytest.mark.parametrize("api_key,configured", [("sk_test_123", True), (None, False)])
async def test_system_health_reports_payment_gateway(api_client, admin, monkeypatch, api_key, configured):
    monkeypatch.setattr(stripe_gateway, "api_key", api_key)

    resp = await api_client.get("/api/dashboard/system-health", headers=auth_headers(admin))

    body = resp.json()
    assert body["payment_gateway"] == {"configured": configured}
    assert body["status"] == "healthy"
