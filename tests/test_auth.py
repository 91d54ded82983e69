# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Login code endpoint tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from aeroride_server.models import OneTimeCode, Profile
from aeroride_server.services import otp
from aeroride_server.services.email import EmailDeliveryError

pytestmark = pytest.mark.anyio


async def test_issue_then_verify_creates_passenger(client: AsyncClient, db, sent_emails, fixed_code):
    """Issue for a new email, verify with the mocked code, get a new passenger account."""
    r = await client.post("/api/v1/auth/send-otp", json={"email": "user@example.com"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert "canResendAt" in data
    assert sent_emails[0]["to"] == "user@example.com"
    assert "123456" in sent_emails[0]["body"]

    r = await client.post("/api/v1/auth/verify-otp", json={"email": "user@example.com", "code": "123456"})
    assert r.status_code == 200
    data = r.json()
    assert data["success"] is True
    assert data["isNewUser"] is True
    assert data["user"]["email"] == "user@example.com"
    assert data["session"]["token_type"] == "bearer"
    assert data["warnings"] == []

    profile = (await db.execute(select(Profile).where(Profile.email == "user@example.com"))).scalar_one()
    assert profile.role == "passenger"
    assert profile.full_name == "user"


async def test_second_login_is_not_new(client: AsyncClient, login):
    first_id, _ = await login("again@example.com")
    r = await client.post("/api/v1/auth/send-otp", json={"email": "again@example.com"})
    assert r.status_code == 200
    r = await client.post("/api/v1/auth/verify-otp", json={"email": "again@example.com", "code": "123456"})
    data = r.json()
    assert data["isNewUser"] is False
    assert data["user"]["id"] == first_id
    assert data["message"] == "Login successful!"


async def test_code_verifies_only_once(client: AsyncClient, fixed_code):
    await client.post("/api/v1/auth/send-otp", json={"email": "once@example.com"})
    body = {"email": "once@example.com", "code": fixed_code}
    assert (await client.post("/api/v1/auth/verify-otp", json=body)).status_code == 200
    r = await client.post("/api/v1/auth/verify-otp", json=body)
    assert r.status_code == 400
    assert r.json() == {"success": False, "error": "Invalid or expired code", "code": "invalid_or_expired_code"}


async def test_never_issued_code_rejected(client: AsyncClient):
    r = await client.post("/api/v1/auth/verify-otp", json={"email": "nobody@example.com", "code": "654321"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["code"] == "invalid_or_expired_code"


async def test_fourth_request_in_window_is_rate_limited(client: AsyncClient):
    for _ in range(3):
        r = await client.post("/api/v1/auth/send-otp", json={"email": "busy@example.com"})
        assert r.status_code == 200
    r = await client.post("/api/v1/auth/send-otp", json={"email": "busy@example.com"})
    assert r.status_code == 429
    assert r.json()["code"] == "rate_limited"
    assert "retry-after" in r.headers
    # Other identifiers are unaffected
    r = await client.post("/api/v1/auth/send-otp", json={"email": "calm@example.com"})
    assert r.status_code == 200


async def test_email_without_at_sign_rejected(client: AsyncClient):
    r = await client.post("/api/v1/auth/send-otp", json={"email": "not-an-email"})
    assert r.status_code == 400
    assert r.json()["code"] == "malformed_input"


async def test_wrong_length_code_rejected(client: AsyncClient):
    r = await client.post("/api/v1/auth/verify-otp", json={"email": "user@example.com", "code": "12345"})
    assert r.status_code == 400
    assert r.json()["code"] == "malformed_code"


async def test_delivery_failure_discards_code(client: AsyncClient, db, monkeypatch, fixed_code):
    async def failing_send_email(to, subject, body, html_body=None):
        raise EmailDeliveryError("smtp down")

    monkeypatch.setattr(otp, "send_email", failing_send_email)
    r = await client.post("/api/v1/auth/send-otp", json={"email": "lost@example.com"})
    assert r.status_code == 502
    assert r.json()["code"] == "delivery_failed"
    rows = (await db.execute(select(OneTimeCode).where(OneTimeCode.email == "lost@example.com"))).scalars().all()
    assert rows == []


async def test_driver_signup_gets_role(client: AsyncClient, login):
    _, headers = await login("driver@example.com", role="driver")
    r = await client.get("/api/v1/profiles/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["role"] == "driver"


async def test_admin_role_cannot_be_self_assigned(client: AsyncClient, fixed_code):
    await client.post("/api/v1/auth/send-otp", json={"email": "sneaky@example.com"})
    r = await client.post(
        "/api/v1/auth/verify-otp",
        json={"email": "sneaky@example.com", "code": fixed_code, "role": "super_admin"},
    )
    assert r.status_code == 422


async def test_me(client: AsyncClient, login):
    user_id, headers = await login("me@example.com")
    r = await client.get("/api/v1/auth/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == user_id
    assert r.json()["email"] == "me@example.com"


async def test_me_requires_auth(client: AsyncClient):
    """GET /auth/me without token returns 401."""
    r = await client.get("/api/v1/auth/me")
    assert r.status_code == 401


async def test_verify_attempts_limited_despite_rotating_forwarded_header(client: AsyncClient):
    statuses = []
    for i in range(12):
        r = await client.post(
            "/api/v1/auth/verify-otp",
            json={"email": "target@example.com", "code": "000000"},
            headers={"X-Forwarded-For": f"203.0.113.{i}"},
        )
        statuses.append(r.status_code)
    assert statuses[:10] == [400] * 10
    assert statuses[10:] == [429, 429]
