# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Profile API routes. Admins (super/airline) manage other users' profiles."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.auth import get_current_profile, require_admin
from aeroride_server.database import get_db
from aeroride_server.models import Profile, Role
from aeroride_server.api.schemas import ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/profiles", tags=["profiles"])


async def _get_profile(user_id: int, db: AsyncSession) -> Profile:
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    profile = result.scalar_one_or_none()
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Profile = Depends(get_current_profile)) -> ProfileResponse:
    return ProfileResponse.model_validate(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update own profile. A role change is ignored unless the caller is a super admin."""
    changes = data.model_dump(exclude_unset=True)
    if "role" in changes and profile.role != Role.super_admin.value:
        changes.pop("role")
    for key, value in changes.items():
        if value is not None:
            setattr(profile, key, value)
    await db.commit()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


@router.get("", response_model=list[ProfileResponse])
async def list_profiles(
    role: Role | None = Query(None),
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[ProfileResponse]:
    """All profiles, newest first. Admin only."""
    q = select(Profile).order_by(Profile.created_at.desc(), Profile.id.desc())
    if role is not None:
        q = q.where(Profile.role == role.value)
    result = await db.execute(q)
    return [ProfileResponse.model_validate(p) for p in result.scalars().all()]


@router.put("/{user_id}", response_model=ProfileResponse)
async def update_profile(
    user_id: int,
    data: ProfileUpdate,
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update another user's profile. Admin only; only a super admin may change roles."""
    profile = await _get_profile(user_id, db)
    changes = data.model_dump(exclude_unset=True)
    if "role" in changes and admin.role != Role.super_admin.value:
        changes.pop("role")
    for key, value in changes.items():
        if value is not None:
            setattr(profile, key, value)
    await db.commit()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)


@router.post("/{user_id}/verify", response_model=ProfileResponse)
async def verify_profile(
    user_id: int,
    _admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Mark a user as verified. Admin only."""
    profile = await _get_profile(user_id, db)
    profile.is_verified = True
    await db.commit()
    await db.refresh(profile)
    return ProfileResponse.model_validate(profile)
