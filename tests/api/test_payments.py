import pytest

from factories import auth_headers, make_class, make_payment
from fitstat.domain.payments.gateway import PaymentGatewayError, PaymentGatewayUnavailable
from fitstat.models import FitnessClass, Payment


def booking_payload(user, fitness_class, intent_id="pi_paid_1", **overrides):
    payload = {
        "userEmail": user.email,
        "userName": user.name,
        "trainerName": "Tom Trainer",
        "trainerEmail": "tom@fitstat.test",
        "classId": fitness_class.id,
        "packageName": "Standard",
        "packagePrice": 25,
        "slotName": "Morning",
        "paymentIntentId": intent_id,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_payment_intent_converts_to_cents(api_client, fake_gateway, member):
    resp = await api_client.post(
        "/api/payments/create-payment-intent",
        json={"amount": 62.5, "metadata": {"classId": "3"}},
        headers=auth_headers(member),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["paymentIntentId"] == "pi_test_1"
    assert body["clientSecret"].startswith("pi_test_1_secret")
    assert fake_gateway.created == [
        {"amount": 6250, "currency": "usd", "metadata": {"classId": "3", "userEmail": member.email}}
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [49, 49.99, 0.5])
async def test_create_payment_intent_below_minimum(api_client, fake_gateway, member, amount):
    resp = await api_client.post(
        "/api/payments/create-payment-intent", json={"amount": amount}, headers=auth_headers(member)
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Amount must be at least 50"
    assert fake_gateway.created == []


@pytest.mark.asyncio
async def test_create_payment_intent_accepts_minimum(api_client, fake_gateway, member):
    resp = await api_client.post(
        "/api/payments/create-payment-intent", json={"amount": 50}, headers=auth_headers(member)
    )
    assert resp.status_code == 200
    assert fake_gateway.created[0]["amount"] == 5000


@pytest.mark.asyncio
async def test_create_payment_intent_requires_positive_amount(api_client, fake_gateway, member):
    resp = await api_client.post(
        "/api/payments/create-payment-intent", json={"amount": 0}, headers=auth_headers(member)
    )
    assert resp.status_code == 400
    assert resp.json()["errors"][0]["field"] == "amount"


@pytest.mark.asyncio
async def test_successful_payment_books_the_class(api_client, fake_gateway, db_session, member, yoga_class):
    fake_gateway.add_intent("pi_paid_1", status="succeeded")

    resp = await api_client.post(
        "/api/payments", json=booking_payload(member, yoga_class), headers=auth_headers(member)
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["payment_status"] == "completed"
    assert body["user_email"] == member.email
    assert body["fitness_class"]["name"] == "Morning Yoga"
    assert fake_gateway.retrieved == ["pi_paid_1"]

    db_session.expire_all()
    assert db_session.get(FitnessClass, yoga_class.id).booking_count == 1


@pytest.mark.asyncio
async def test_unsuccessful_intent_is_not_recorded(api_client, fake_gateway, db_session, member, yoga_class):
    fake_gateway.add_intent("pi_pending_1", status="requires_payment_method")

    resp = await api_client.post(
        "/api/payments",
        json=booking_payload(member, yoga_class, intent_id="pi_pending_1"),
        headers=auth_headers(member),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment was not successful"
    assert db_session.query(Payment).count() == 0
    db_session.expire_all()
    assert db_session.get(FitnessClass, yoga_class.id).booking_count == 0


@pytest.mark.asyncio
async def test_unknown_intent_surfaces_gateway_message(api_client, fake_gateway, member, yoga_class):
    resp = await api_client.post(
        "/api/payments",
        json=booking_payload(member, yoga_class, intent_id="pi_missing"),
        headers=auth_headers(member),
    )

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Payment error: No such payment_intent")


@pytest.mark.asyncio
async def test_full_class_rejects_payment_before_gateway(api_client, fake_gateway, db_session, member):
    full_class = make_class(db_session, name="Sold Out", booking_count=1, max_capacity=1)
    fake_gateway.add_intent("pi_paid_1")

    resp = await api_client.post(
        "/api/payments", json=booking_payload(member, full_class), headers=auth_headers(member)
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Class is fully booked"
    assert fake_gateway.retrieved == []


@pytest.mark.asyncio
async def test_member_cannot_pay_for_someone_else(api_client, fake_gateway, member, other_member, yoga_class):
    fake_gateway.add_intent("pi_paid_1")

    resp = await api_client.post(
        "/api/payments", json=booking_payload(other_member, yoga_class), headers=auth_headers(member)
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_malformed_intent_id_is_rejected(api_client, fake_gateway, member, yoga_class):
    resp = await api_client.post(
        "/api/payments",
        json=booking_payload(member, yoga_class, intent_id="pi bad/../id"),
        headers=auth_headers(member),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Validation failed"


@pytest.mark.asyncio
async def test_booked_slots_only_lists_completed(api_client, db_session, member, yoga_class):
    make_payment(db_session, member, yoga_class, intent_id="pi_a", slot_name="Morning")
    make_payment(db_session, member, yoga_class, intent_id="pi_b", slot_name="Evening", payment_status="refunded")

    resp = await api_client.get("/api/payments/slots/booked", params={"classId": yoga_class.id})

    assert resp.status_code == 200
    assert [slot["slot_name"] for slot in resp.json()] == ["Morning"]


@pytest.mark.asyncio
async def test_my_payments_is_scoped_to_caller(api_client, db_session, member, other_member, admin, yoga_class):
    make_payment(db_session, member, yoga_class, intent_id="pi_mine")
    make_payment(db_session, other_member, yoga_class, intent_id="pi_theirs")

    resp = await api_client.get("/api/payments/my-payments", headers=auth_headers(member))
    assert [p["payment_intent_id"] for p in resp.json()] == ["pi_mine"]

    resp = await api_client.get(
        "/api/payments/my-payments", params={"email": other_member.email}, headers=auth_headers(member)
    )
    assert resp.status_code == 403

    resp = await api_client.get(
        "/api/payments/my-payments", params={"email": other_member.email}, headers=auth_headers(admin)
    )
    assert [p["payment_intent_id"] for p in resp.json()] == ["pi_theirs"]


@pytest.mark.asyncio
async def test_latest_payment(api_client, db_session, member, yoga_class):
    resp = await api_client.get("/api/payments/latest", headers=auth_headers(member))
    assert resp.status_code == 200
    assert resp.json() is None

    make_payment(db_session, member, yoga_class, intent_id="pi_first")
    make_payment(db_session, member, yoga_class, intent_id="pi_second")

    resp = await api_client.get("/api/payments/latest", headers=auth_headers(member))
    assert resp.json()["payment_intent_id"] == "pi_second"


@pytest.mark.asyncio
async def test_get_payment_hides_other_members_payments(api_client, db_session, member, other_member, yoga_class):
    payment = make_payment(db_session, other_member, yoga_class)

    resp = await api_client.get(f"/api/payments/{payment.id}", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.get(f"/api/payments/{payment.id}", headers=auth_headers(other_member))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_admin_list_filters_by_status(api_client, db_session, member, admin, yoga_class):
    make_payment(db_session, member, yoga_class, intent_id="pi_a")
    make_payment(db_session, member, yoga_class, intent_id="pi_b", payment_status="refunded")

    resp = await api_client.get("/api/payments", headers=auth_headers(member))
    assert resp.status_code == 403

    resp = await api_client.get(
        "/api/payments", params={"status": "refunded"}, headers=auth_headers(admin)
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["totalItems"] == 1
    assert body["payments"][0]["payment_intent_id"] == "pi_b"


@pytest.mark.asyncio
async def test_refund_is_issued_once(api_client, fake_gateway, db_session, admin, member, yoga_class):
    payment = make_payment(db_session, member, yoga_class, intent_id="pi_refund_me")

    first = await api_client.post(
        f"/api/payments/{payment.id}/refund", json={"reason": "duplicate"}, headers=auth_headers(admin)
    )
    assert first.status_code == 200
    assert first.json()["payment_status"] == "refunded"
    assert first.json()["refund_id"] == "re_test_1"
    assert first.json()["refund_reason"] == "duplicate"

    second = await api_client.post(f"/api/payments/{payment.id}/refund", headers=auth_headers(admin))
    assert second.status_code == 409
    assert fake_gateway.refunds == [("pi_refund_me", "duplicate")]


@pytest.mark.asyncio
async def test_refund_requires_admin(api_client, fake_gateway, db_session, member, yoga_class):
    payment = make_payment(db_session, member, yoga_class)

    resp = await api_client.post(f"/api/payments/{payment.id}/refund", headers=auth_headers(member))
    assert resp.status_code == 403
    assert fake_gateway.refunds == []


@pytest.mark.asyncio
async def test_payment_stats(api_client, db_session, admin, member, other_member, yoga_class):
    make_payment(db_session, member, yoga_class, intent_id="pi_a", package_price=20)
    make_payment(db_session, member, yoga_class, intent_id="pi_b", package_price=30)
    make_payment(db_session, other_member, yoga_class, intent_id="pi_c", package_price=15)
    make_payment(db_session, other_member, yoga_class, intent_id="pi_d", payment_status="refunded")

    resp = await api_client.get("/api/payments/stats", headers=auth_headers(admin))

    assert resp.status_code == 200
    body = resp.json()
    assert body["overview"]["total_payments"] == 4
    assert body["overview"]["total_revenue"] == 65
    assert body["overview"]["refunded_payments"] == 1
    assert body["unique_paying_members"] == 2
    assert body["top_users"][0]["user_email"] == member.email
    assert len(body["monthly_revenue"]) == 12
    assert body["monthly_revenue"][-1]["revenue"] == 65


@pytest.mark.asyncio
async def test_declined_intent_creation_is_a_client_error(api_client, fake_gateway, member):
    fake_gateway.create_error = PaymentGatewayError("Your card was declined.", 402, "card_declined")

    resp = await api_client.post(
        "/api/payments/create-payment-intent", json={"amount": 60}, headers=auth_headers(member)
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Payment error: Your card was declined."


@pytest.mark.asyncio
async def test_unreachable_gateway_on_intent_creation(api_client, fake_gateway, member):
    fake_gateway.create_error = PaymentGatewayUnavailable("connect timeout to 10.1.2.3:443")

    resp = await api_client.post(
        "/api/payments/create-payment-intent", json={"amount": 60}, headers=auth_headers(member)
    )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to create payment intent"
    assert "10.1.2.3" not in resp.text


@pytest.mark.asyncio
async def test_unreachable_gateway_on_confirmation(api_client, fake_gateway, db_session, member, yoga_class):
    fake_gateway.add_intent("pi_paid_1")
    fake_gateway.retrieve_error = PaymentGatewayUnavailable("connect timeout to 10.1.2.3:443")

    resp = await api_client.post(
        "/api/payments", json=booking_payload(member, yoga_class), headers=auth_headers(member)
    )

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to verify payment"
    assert "10.1.2.3" not in resp.text
    assert db_session.query(Payment).count() == 0


@pytest.mark.asyncio
async def test_refund_rejected_by_gateway(api_client, fake_gateway, db_session, admin, member, yoga_class):
    payment = make_payment(db_session, member, yoga_class, intent_id="pi_disputed")
    fake_gateway.refund_error = PaymentGatewayError(
        "Charge has already been disputed.", 400, "charge_disputed"
    )

    resp = await api_client.post(f"/api/payments/{payment.id}/refund", headers=auth_headers(admin))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Refund error: Charge has already been disputed."
    db_session.expire_all()
    assert db_session.get(Payment, payment.id).payment_status == "completed"


@pytest.mark.asyncio
async def test_unreachable_gateway_on_refund(api_client, fake_gateway, db_session, admin, member, yoga_class):
    payment = make_payment(db_session, member, yoga_class, intent_id="pi_refund_me")
    fake_gateway.refund_error = PaymentGatewayUnavailable("connect timeout to 10.1.2.3:443")

    resp = await api_client.post(f"/api/payments/{payment.id}/refund", headers=auth_headers(admin))

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to refund payment"
    assert "10.1.2.3" not in resp.text
    db_session.expire_all()
    assert db_session.get(Payment, payment.id).refund_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "failed"])
async def test_only_completed_payments_can_be_refunded(
    api_client, fake_gateway, db_session, admin, member, yoga_class, status
):
    payment = make_payment(db_session, member, yoga_class, payment_status=status)

    resp = await api_client.post(f"/api/payments/{payment.id}/refund", headers=auth_headers(admin))

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Only completed payments can be refunded"
    assert fake_gateway.refunds == []
