# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pytest fixtures. Tests run against a throwaway SQLite database; email and routing are faked."""

import os
import tempfile
from pathlib import Path

_db_dir = tempfile.mkdtemp(prefix="aeroride-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_db_dir) / 'test.db'}"
os.environ["GOOGLE_MAPS_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from aeroride_server import rate_limit  # noqa: E402
from aeroride_server.database import async_session_maker, drop_db, engine, init_db  # noqa: E402
from aeroride_server.main import app  # noqa: E402
from aeroride_server.services import otp  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db():
    """Fresh schema per test."""
    await drop_db()
    await init_db()
    async with async_session_maker() as session:
        yield session
    # Pooled connections belong to this test's event loop
    await engine.dispose()


@pytest.fixture
def sent_emails(monkeypatch):
    """Capture login code emails instead of sending them."""
    outbox: list[dict] = []

    async def fake_send_email(to, subject, body, html_body=None):
        outbox.append({"to": to, "subject": subject, "body": body})

    monkeypatch.setattr(otp, "send_email", fake_send_email)
    return outbox


@pytest.fixture
def fixed_code(monkeypatch):
    monkeypatch.setattr(otp, "generate_code", lambda: "123456")
    return "123456"


@pytest.fixture
async def client(db, sent_emails):
    app.state.issue_limiter = rate_limit.build_issue_limiter()
    rate_limit.clear_buckets()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def login(client, fixed_code):
    """Log in through the API; returns (user_id, Authorization headers)."""

    async def _login(email: str, role: str | None = None) -> tuple[int, dict[str, str]]:
        r = await client.post("/api/v1/auth/send-otp", json={"email": email})
        assert r.status_code == 200, r.text
        body = {"email": email, "code": fixed_code}
        if role:
            body["role"] = role
        r = await client.post("/api/v1/auth/verify-otp", json=body)
        assert r.status_code == 200, r.text
        data = r.json()
        return data["user"]["id"], {"Authorization": f"Bearer {data['session']['access_token']}"}

    return _login
