import asyncio
import logging
import time

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from app import rate_limiter
from app.shared.validators import format_whatsapp_number, validate_email, validate_phone, validate_uuid
from app.webhook_security import compute_signature, extract_signing_key, verify_signature_headers


def make_request(ip="10.0.0.1"):
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/leads/intake",
        "headers": [(b"x-forwarded-for", ip.encode())],
        "client": ("127.0.0.1", 1234),
        "query_string": b"",
    }
    return Request(scope)


def test_root_and_health(client):
    assert client.get("/").json() == {"message": "Race Technik API is running"}
    assert client.get("/health").json() == {"status": "healthy"}


def test_security_headers_applied_outside_health(client):
    response = client.get("/services")
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "default-src 'none'" in response.headers["Content-Security-Policy"]

    assert "X-Frame-Options" not in client.get("/health").headers


def test_missing_authorization_is_401(client):
    assert client.get("/bookings").status_code == 401


def test_requests_are_logged_with_status(client, caplog):
    with caplog.at_level(logging.INFO, logger="app.main"):
        client.get("/health")
        client.get("/bookings")

    messages = [r.getMessage() for r in caplog.records if r.name == "app.main"]
    assert any(m.startswith("GET /health - 200 (") for m in messages)
    assert any(m.startswith("GET /bookings - 401 (") for m in messages)


def test_validate_phone():
    assert validate_phone("082 123 4567") == "+27821234567"
    assert validate_phone("+44 20 7946 0958") == "+442079460958"
    assert validate_phone(None) is None
    with pytest.raises(ValueError):
        validate_phone("12345")


def test_validate_email_and_uuid():
    assert validate_email(" Someone@Example.COM ") == "someone@example.com"
    with pytest.raises(ValueError):
        validate_email("not-an-email")
    assert validate_uuid("0b6f1c59-2c4e-4f63-9a5b-7f1e6f0e8d11")
    assert not validate_uuid("booking-1")


def test_format_whatsapp_number():
    assert format_whatsapp_number("27821234567") == "whatsapp:+27821234567"
    assert format_whatsapp_number("+27821234567") == "whatsapp:+27821234567"


def test_memory_rate_limit_counts_within_window():
    key = f"test:{time.time()}"

    assert rate_limiter.check_rate_limit(key, 2, 60, None)[0] is True
    assert rate_limiter.check_rate_limit(key, 2, 60, None)[0] is True
    allowed, count, ttl = rate_limiter.check_rate_limit(key, 2, 60, None)

    assert allowed is False
    assert count == 2
    assert 0 < ttl <= 60


def test_rate_limit_dependency_raises_429(monkeypatch):
    monkeypatch.setattr(rate_limiter, "RATE_LIMIT_ENABLED", True)
    monkeypatch.setattr(rate_limiter, "get_optional_redis_client", lambda: None)
    limiter = rate_limiter.create_rate_limiter(1, 60, key_prefix=f"dep-{time.time()}")

    asyncio.run(limiter(make_request()))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(limiter(make_request()))

    assert exc.value.status_code == 429
    assert "Retry-After" in exc.value.headers

    # Limits are per client IP
    asyncio.run(limiter(make_request("10.0.0.2")))


def test_rate_limit_disabled_is_a_no_op():
    limiter = rate_limiter.create_rate_limiter(0, 60, key_prefix="disabled")
    assert asyncio.run(limiter(make_request())) is None


def test_signing_key_from_whsec_secret():
    assert extract_signing_key("whsec_c2VjcmV0") == b"secret"
    assert extract_signing_key("plain-secret!") == b"plain-secret!"


def test_verify_signature_headers():
    secret = "whsec_c2VjcmV0LWtleQ=="
    body = b'{"type":"payment.succeeded"}'
    timestamp = str(int(time.time()))
    signature = compute_signature(secret, "msg_1", timestamp, body)
    headers = {
        "webhook-id": "msg_1",
        "webhook-timestamp": timestamp,
        "webhook-signature": f"v1,bogus v1,{signature}",
    }

    assert verify_signature_headers(headers, body, secret)
    assert not verify_signature_headers(headers, body + b" ", secret)
    assert not verify_signature_headers({**headers, "webhook-signature": ""}, body, secret)

    stale = str(int(time.time()) - 3600)
    stale_headers = {
        "webhook-id": "msg_1",
        "webhook-timestamp": stale,
        "webhook-signature": f"v1,{compute_signature(secret, 'msg_1', stale, body)}",
    }
    assert not verify_signature_headers(stale_headers, body, secret)
