import json
import time
from datetime import date, timedelta

import httpx
import pytest
from conftest import auth_headers, create_profile

from app import rate_limiter
from app.domain.payments.router import WEBHOOK_RATE_LIMIT
from app.models import Booking
from app.models_notifications import Notification
from app.models_store import Merchandise, Order, OrderItem
from app.webhook_security import compute_signature


@pytest.fixture
def yoco(monkeypatch):
    """Route Yoco API calls to an in-memory handler; returns the list of captured requests"""
    monkeypatch.setattr("app.config.YOCO_SECRET_KEY", "sk_live_test")
    monkeypatch.setattr("app.config.YOCO_TEST_SECRET_KEY", None)
    monkeypatch.setattr("app.config.YOCO_WEBHOOK_SECRET", None)

    state = {"requests": [], "checkout_status": "completed", "fail_create": False, "known": True}

    def handler(request: httpx.Request) -> httpx.Response:
        state["requests"].append(request)
        if request.method == "POST" and request.url.path.endswith("/checkouts"):
            if state["fail_create"]:
                return httpx.Response(500, text="upstream error")
            return httpx.Response(200, json={"id": "ch_123", "redirectUrl": "https://pay.yoco.com/ch_123"})
        if request.method == "GET" and "/checkouts/" in request.url.path:
            if not state["known"]:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json={"id": "ch_123", "status": state["checkout_status"], "amount": 1850000})
        if request.method == "POST" and request.url.path.endswith("/webhooks"):
            return httpx.Response(200, json={"id": "wh_1", "secret": "whsec_abc"})
        return httpx.Response(404)

    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr("app.domain.payments.yoco_service.httpx.AsyncClient", client_factory)
    return state


@pytest.fixture
def booking(db, customer, vehicle, ppf_service):
    booking = Booking(
        user_id=customer.id,
        service_id=ppf_service.id,
        vehicle_id=vehicle.id,
        booking_date=date.today() + timedelta(days=7),
        booking_time="10:00 AM",
        payment_amount=18500.0,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


@pytest.fixture
def order(db, customer):
    merch = Merchandise(name="Race Technik Cap", price=350.0, stock_quantity=5)
    db.add(merch)
    db.flush()
    order = Order(user_id=customer.id, total_amount=700.0)
    order.items = [OrderItem(merchandise_id=merch.id, quantity=2, unit_price=350.0)]
    db.add(order)
    db.commit()
    db.refresh(order)
    return order


def webhook_event(event_type, checkout_id="ch_123", **metadata):
    return {
        "type": event_type,
        "payload": {"id": checkout_id, "amount": 1850000, "metadata": metadata},
    }


def test_booking_checkout(client, db, customer_headers, booking, yoco):
    response = client.post(
        "/payments/checkout",
        json={"orderType": "booking", "bookingId": booking.id},
        headers=customer_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"checkoutId": "ch_123", "redirectUrl": "https://pay.yoco.com/ch_123"}

    sent = json.loads(yoco["requests"][0].content)
    assert sent["amount"] == 1850000
    assert sent["currency"] == "ZAR"
    assert sent["metadata"] == {"bookingId": booking.id, "orderType": "booking"}
    assert sent["successUrl"] == "http://localhost:5173/bookings?payment=success"
    assert sent["failureUrl"] == "http://localhost:5173/bookings?payment=failed"
    assert yoco["requests"][0].headers["Authorization"] == "Bearer sk_live_test"

    db.expire_all()
    assert db.get(Booking, booking.id).yoco_checkout_id == "ch_123"


def test_order_checkout_uses_order_total(client, customer_headers, order, yoco):
    response = client.post(
        "/payments/checkout",
        json={"orderType": "merchandise", "orderId": order.id},
        headers=customer_headers,
    )

    assert response.status_code == 200
    sent = json.loads(yoco["requests"][0].content)
    assert sent["amount"] == 70000
    assert sent["metadata"] == {"orderId": order.id, "orderType": "merchandise"}
    assert sent["successUrl"].endswith("/store?payment=success")


def test_checkout_validation(client, db, customer_headers, booking, yoco):
    def checkout(**body):
        return client.post("/payments/checkout", json=body, headers=customer_headers)

    assert checkout(orderType="booking", bookingId=booking.id, currency="USD").status_code == 400
    assert checkout(orderType="booking", bookingId="not-a-uuid").status_code == 400
    assert checkout(orderType="gift", bookingId=booking.id).status_code == 400

    other = create_profile(db, "other@example.com")
    response = client.post(
        "/payments/checkout", json={"bookingId": booking.id}, headers=auth_headers(other)
    )
    assert response.status_code == 404

    booking.payment_status = "paid"
    db.commit()
    assert checkout(bookingId=booking.id).status_code == 400

    booking.payment_status = "pending"
    booking.payment_amount = 0
    db.commit()
    assert checkout(bookingId=booking.id).status_code == 400

    assert yoco["requests"] == []


def test_checkout_without_gateway_key(client, customer_headers, booking, monkeypatch):
    monkeypatch.setattr("app.config.YOCO_SECRET_KEY", None)

    response = client.post("/payments/checkout", json={"bookingId": booking.id}, headers=customer_headers)

    assert response.status_code == 500
    assert response.json()["detail"] == "Payment gateway not configured"


def test_checkout_gateway_error_is_502(client, customer_headers, booking, yoco):
    yoco["fail_create"] = True
    response = client.post("/payments/checkout", json={"bookingId": booking.id}, headers=customer_headers)
    assert response.status_code == 502


def test_successful_booking_payment(client, db, customer, staff_user, booking, yoco):
    response = client.post(
        "/payments/yoco/webhook", json=webhook_event("payment.succeeded", bookingId=booking.id)
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "bookingId": booking.id}

    db.expire_all()
    paid = db.get(Booking, booking.id)
    assert paid.payment_status == "paid"
    assert paid.status == "confirmed"
    assert paid.payment_date is not None

    customer_note = db.query(Notification).filter(Notification.recipient_uid == customer.id).one()
    assert customer_note.type == "payment_confirmed"
    assert "2023 Porsche 911 GT3" in customer_note.message

    staff_note = db.query(Notification).filter(Notification.recipient_uid == staff_user.id).one()
    assert staff_note.type == "payment_received"
    assert "R18500.00" in staff_note.message

    # Redelivery of the same event changes nothing
    client.post("/payments/yoco/webhook", json=webhook_event("payment.succeeded", bookingId=booking.id))
    assert db.query(Notification).count() == 2


def test_payment_found_by_checkout_id_without_metadata(client, db, booking, yoco):
    booking.yoco_checkout_id = "ch_123"
    db.commit()

    response = client.post("/payments/yoco/webhook", json=webhook_event("checkout.succeeded"))

    assert response.json()["bookingId"] == booking.id


def test_unverified_payment_is_rejected(client, db, booking, yoco):
    yoco["known"] = False
    response = client.post(
        "/payments/yoco/webhook", json=webhook_event("payment.succeeded", bookingId=booking.id)
    )
    assert response.status_code == 403

    db.expire_all()
    assert db.get(Booking, booking.id).payment_status == "pending"


def test_incomplete_payment_is_rejected(client, booking, yoco):
    yoco["checkout_status"] = "created"
    response = client.post(
        "/payments/yoco/webhook", json=webhook_event("payment.succeeded", bookingId=booking.id)
    )
    assert response.status_code == 400


def test_successful_order_payment_decrements_stock(client, db, customer, order, yoco):
    response = client.post(
        "/payments/yoco/webhook",
        json=webhook_event("payment.succeeded", orderId=order.id, orderType="merchandise"),
    )

    assert response.json() == {"success": True, "orderId": order.id}
    db.expire_all()
    paid = db.get(Order, order.id)
    assert paid.payment_status == "paid"
    assert paid.status == "confirmed"
    assert paid.items[0].merchandise.stock_quantity == 3

    note = db.query(Notification).filter(Notification.recipient_uid == customer.id).one()
    assert note.type == "order_confirmed"


def test_failed_payment_marks_booking(client, db, customer, booking, yoco):
    response = client.post(
        "/payments/yoco/webhook", json=webhook_event("payment.failed", bookingId=booking.id)
    )

    assert response.json() == {"success": True}
    db.expire_all()
    assert db.get(Booking, booking.id).payment_status == "failed"
    note = db.query(Notification).filter(Notification.recipient_uid == customer.id).one()
    assert note.type == "payment_failed"
    assert note.action_required is True


def test_unknown_events_and_bad_payloads(client, yoco):
    response = client.post("/payments/yoco/webhook", json=webhook_event("refund.succeeded"))
    assert response.json() == {"received": True}

    response = client.post(
        "/payments/yoco/webhook", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400

    assert client.post("/payments/yoco/webhook", json={"type": "payment.succeeded"}).status_code == 400


def test_webhook_is_rate_limited_per_ip(client, yoco, monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_optional_redis_client", lambda: None)
    ip = "10.9.8.7"
    now = int(time.time())
    monkeypatch.setitem(
        rate_limiter.memory_cache,
        f"yoco_webhook:{ip}",
        {"count": WEBHOOK_RATE_LIMIT, "reset_time": now + 60, "last_redis_sync": now},
    )

    blocked = client.post(
        "/payments/yoco/webhook",
        json=webhook_event("refund.succeeded"),
        headers={"X-Forwarded-For": ip},
    )
    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers

    allowed = client.post(
        "/payments/yoco/webhook",
        json=webhook_event("refund.succeeded"),
        headers={"X-Forwarded-For": "10.9.0.200"},
    )
    assert allowed.json() == {"received": True}


def test_webhook_signature_enforced_when_secret_set(client, db, booking, yoco, monkeypatch):
    secret = "whsec_c2VjcmV0LWtleQ=="
    monkeypatch.setattr("app.config.YOCO_WEBHOOK_SECRET", secret)
    body = json.dumps(webhook_event("payment.succeeded", bookingId=booking.id)).encode()

    response = client.post(
        "/payments/yoco/webhook", content=body, headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 401

    timestamp = str(int(time.time()))
    headers = {
        "Content-Type": "application/json",
        "webhook-id": "msg_1",
        "webhook-timestamp": timestamp,
        "webhook-signature": f"v1,{compute_signature(secret, 'msg_1', timestamp, body)}",
    }
    response = client.post("/payments/yoco/webhook", content=body, headers=headers)
    assert response.status_code == 200
    assert response.json()["bookingId"] == booking.id


def test_register_webhook_requires_admin(client, staff_headers, admin_headers, yoco):
    payload = {"url": "https://api.racetechnik.co.za/payments/yoco/webhook"}
    assert client.post("/payments/yoco/register-webhook", json=payload, headers=staff_headers).status_code == 403

    response = client.post("/payments/yoco/register-webhook", json=payload, headers=admin_headers)
    assert response.status_code == 200
    assert response.json() == {"id": "wh_1", "secret": "whsec_abc"}
    assert json.loads(yoco["requests"][0].content) == {
        "name": "race-technik-payments",
        "url": "https://api.racetechnik.co.za/payments/yoco/webhook",
    }
