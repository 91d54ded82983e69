# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Driver onboarding endpoint tests."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select, update

from aeroride_server.models import DriverProfile, Profile

pytestmark = pytest.mark.anyio

DETAILS = {
    "license_number": "LAG-123-456",
    "license_expiry": "2028-06-30",
    "vehicle_type": "suv",
    "vehicle_make": "Toyota",
    "vehicle_model": "Highlander",
    "vehicle_year": 2021,
    "vehicle_plate": "abc-123-xy",
    "vehicle_color": "black",
    "airport_code": "los",
}


async def _make_admin(db, user_id: int) -> None:
    await db.execute(update(Profile).where(Profile.user_id == user_id).values(role="airline_admin"))
    await db.commit()


async def test_register_completes_signup_record(client: AsyncClient, db, login):
    user_id, headers = await login("cabbie@example.com", role="driver")
    r = await client.post("/api/v1/drivers", json=DETAILS, headers=headers)
    assert r.status_code == 201
    data = r.json()
    assert data["user_id"] == user_id
    assert data["full_name"] == "cabbie"
    assert data["vehicle_plate"] == "ABC-123-XY"
    assert data["airport_code"] == "LOS"
    assert data["status"] == "pending"
    assert data["background_check_status"] == "pending"
    assert data["is_available"] is False

    rows = (await db.execute(select(DriverProfile).where(DriverProfile.user_id == user_id))).scalars().all()
    assert len(rows) == 1

    r = await client.post("/api/v1/drivers", json=DETAILS, headers=headers)
    assert r.status_code == 409

    r = await client.get("/api/v1/drivers/me", headers=headers)
    assert r.json()["license_number"] == "LAG-123-456"


async def test_register_requires_details(client: AsyncClient, login):
    _, headers = await login("cabbie@example.com", role="driver")
    incomplete = {k: v for k, v in DETAILS.items() if k != "license_number"}
    r = await client.post("/api/v1/drivers", json=incomplete, headers=headers)
    assert r.status_code == 422


async def test_driver_cannot_approve_self(client: AsyncClient, login):
    _, headers = await login("cabbie@example.com", role="driver")
    driver = (await client.post("/api/v1/drivers", json=DETAILS, headers=headers)).json()
    r = await client.put(
        f"/api/v1/drivers/{driver['id']}",
        json={"status": "active", "background_check_status": "approved", "rating": 5, "vehicle_color": "white"},
        headers=headers,
    )
    assert r.status_code == 200
    data = r.json()
    assert data["vehicle_color"] == "white"
    assert data["status"] == "pending"
    assert data["background_check_status"] == "pending"
    assert data["rating"] == 0


async def test_only_owner_or_admin_may_update(client: AsyncClient, login):
    _, owner = await login("cabbie@example.com", role="driver")
    _, other = await login("other@example.com", role="driver")
    driver = (await client.post("/api/v1/drivers", json=DETAILS, headers=owner)).json()
    r = await client.put(f"/api/v1/drivers/{driver['id']}", json={"vehicle_color": "red"}, headers=other)
    assert r.status_code == 403
    assert (await client.delete(f"/api/v1/drivers/{driver['id']}", headers=other)).status_code == 403
    assert (await client.put("/api/v1/drivers/99999", json={}, headers=owner)).status_code == 404


async def test_listing_shows_approved_available_drivers(client: AsyncClient, db, login):
    _, driver_headers = await login("cabbie@example.com", role="driver")
    _, pax = await login("pax@example.com")
    admin_id, admin = await login("ops@example.com")
    await _make_admin(db, admin_id)
    driver = (await client.post("/api/v1/drivers", json=DETAILS, headers=driver_headers)).json()

    assert (await client.get("/api/v1/drivers", headers=pax)).json() == []
    r = await client.get("/api/v1/drivers", headers=admin)
    assert [d["id"] for d in r.json()] == [driver["id"]]

    r = await client.put(
        f"/api/v1/drivers/{driver['id']}",
        json={"status": "active", "background_check_status": "approved"},
        headers=admin,
    )
    assert r.json()["status"] == "active"
    assert r.json()["background_check_status"] == "approved"
    # Approved but not yet available
    assert (await client.get("/api/v1/drivers", headers=pax)).json() == []

    await client.put(f"/api/v1/drivers/{driver['id']}", json={"is_available": True}, headers=driver_headers)
    r = await client.get("/api/v1/drivers", params={"airport_code": "los"}, headers=pax)
    assert [d["id"] for d in r.json()] == [driver["id"]]
    r = await client.get("/api/v1/drivers", params={"airport_code": "ABV"}, headers=pax)
    assert r.json() == []

    r = await client.get(f"/api/v1/drivers/{driver['id']}", headers=pax)
    assert r.json()["full_name"] == "cabbie"


async def test_admin_deletes_driver(client: AsyncClient, db, login):
    _, driver_headers = await login("cabbie@example.com", role="driver")
    admin_id, admin = await login("ops@example.com")
    await _make_admin(db, admin_id)
    driver = (await client.post("/api/v1/drivers", json=DETAILS, headers=driver_headers)).json()
    r = await client.delete(f"/api/v1/drivers/{driver['id']}", headers=admin)
    assert r.status_code == 200
    assert (await client.get(f"/api/v1/drivers/{driver['id']}", headers=admin)).status_code == 404
