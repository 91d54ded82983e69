# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Driver onboarding API routes."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.auth import get_current_profile
from aeroride_server.database import get_db
from aeroride_server.models import ADMIN_ROLES, DriverProfile, DriverStatus, Profile
from aeroride_server.api.schemas import DriverCreate, DriverResponse, DriverUpdate

router = APIRouter(prefix="/drivers", tags=["drivers"])

# Approval and reputation fields only admins may change
ADMIN_FIELDS = ("status", "background_check_status", "rating", "total_rides")


def _response(driver: DriverProfile, full_name: str | None) -> DriverResponse:
    return DriverResponse.model_validate(driver).model_copy(update={"full_name": full_name})


async def _with_name(driver: DriverProfile, db: AsyncSession) -> DriverResponse:
    full_name = await db.scalar(select(Profile.full_name).where(Profile.user_id == driver.user_id))
    return _response(driver, full_name)


async def _get_driver(driver_id: int, db: AsyncSession) -> DriverProfile:
    driver = await db.get(DriverProfile, driver_id)
    if not driver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return driver


def _check_owner_or_admin(driver: DriverProfile, profile: Profile) -> None:
    if driver.user_id != profile.user_id and profile.role not in ADMIN_ROLES:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")


@router.get("", response_model=list[DriverResponse])
async def list_drivers(
    airport_code: str | None = Query(None, min_length=3, max_length=8),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> list[DriverResponse]:
    """Drivers, best rated first. Non-admins only see active drivers who are available."""
    q = (
        select(DriverProfile, Profile.full_name)
        .outerjoin(Profile, Profile.user_id == DriverProfile.user_id)
        .order_by(DriverProfile.rating.desc(), DriverProfile.id)
    )
    if profile.role not in ADMIN_ROLES:
        q = q.where(
            DriverProfile.status == DriverStatus.active.value,
            DriverProfile.is_available.is_(True),
        )
    if airport_code:
        q = q.where(DriverProfile.airport_code == airport_code.upper())
    result = await db.execute(q)
    return [_response(driver, full_name) for driver, full_name in result.all()]


@router.post("", response_model=DriverResponse, status_code=status.HTTP_201_CREATED)
async def register_driver(
    data: DriverCreate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> DriverResponse:
    """Submit driver details for approval. Completes the record created at driver signup, if any."""
    result = await db.execute(select(DriverProfile).where(DriverProfile.user_id == profile.user_id))
    driver = result.scalar_one_or_none()
    if driver and driver.is_registered:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Driver profile already exists")
    if driver is None:
        driver = DriverProfile(user_id=profile.user_id)
        db.add(driver)

    for key, value in data.model_dump().items():
        setattr(driver, key, value)
    driver.vehicle_plate = data.vehicle_plate.upper()
    driver.airport_code = data.airport_code.upper()
    driver.status = DriverStatus.pending.value
    driver.background_check_status = "pending"
    driver.is_available = False
    await db.commit()
    await db.refresh(driver)
    return _response(driver, profile.full_name)


@router.get("/me", response_model=DriverResponse)
async def get_my_driver_profile(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> DriverResponse:
    result = await db.execute(select(DriverProfile).where(DriverProfile.user_id == profile.user_id))
    driver = result.scalar_one_or_none()
    if not driver:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Driver not found")
    return _response(driver, profile.full_name)


@router.get("/{driver_id}", response_model=DriverResponse)
async def get_driver(
    driver_id: int,
    _profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> DriverResponse:
    driver = await _get_driver(driver_id, db)
    return await _with_name(driver, db)


@router.put("/{driver_id}", response_model=DriverResponse)
async def update_driver(
    driver_id: int,
    data: DriverUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> DriverResponse:
    """Update driver details. The driver or an admin; approval fields are admin only."""
    driver = await _get_driver(driver_id, db)
    _check_owner_or_admin(driver, profile)
    changes = data.model_dump(exclude_unset=True)
    if profile.role not in ADMIN_ROLES:
        for key in ADMIN_FIELDS:
            changes.pop(key, None)
    for key, value in changes.items():
        if value is None:
            continue
        if key in ("vehicle_plate", "airport_code"):
            value = value.upper()
        elif key == "status":
            value = value.value
        setattr(driver, key, value)
    await db.commit()
    await db.refresh(driver)
    return await _with_name(driver, db)


@router.delete("/{driver_id}")
async def delete_driver(
    driver_id: int,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Delete a driver profile. The driver or an admin."""
    driver = await _get_driver(driver_id, db)
    _check_owner_or_admin(driver, profile)
    await db.delete(driver)
    await db.commit()
    return {"message": "Driver profile deleted successfully"}
