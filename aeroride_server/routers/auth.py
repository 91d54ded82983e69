# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Authentication API routes: passwordless login with emailed one-time codes."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.auth import create_session, get_current_user_id
from aeroride_server.database import get_db
from aeroride_server.models import User
from aeroride_server.rate_limit import IssueRateLimiter, get_issue_limiter, rate_limit_auth_dep
from aeroride_server.api.schemas import (
    SendCodeRequest,
    SendCodeResponse,
    Session,
    SessionUser,
    UserResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from aeroride_server.services import otp

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/send-otp", response_model=SendCodeResponse)
async def send_otp(
    data: SendCodeRequest,
    limiter: IssueRateLimiter = Depends(get_issue_limiter),
    db: AsyncSession = Depends(get_db),
) -> SendCodeResponse:
    """Email a 6-digit login code. At most 3 requests per 30 seconds per email."""
    issued = await otp.issue_code(db, data.email, limiter)
    return SendCodeResponse(message="OTP sent successfully", can_resend_at=issued.can_resend_at)


@router.post(
    "/verify-otp",
    response_model=VerifyCodeResponse,
    dependencies=[Depends(rate_limit_auth_dep)],
)
async def verify_otp(
    data: VerifyCodeRequest,
    db: AsyncSession = Depends(get_db),
) -> VerifyCodeResponse:
    """Exchange a login code for a session. Creates the account on first login."""
    outcome = await otp.verify_code(db, data.email, data.code, role=data.role)
    return VerifyCodeResponse(
        is_new_user=outcome.is_new_user,
        user=SessionUser(id=outcome.user.id, email=outcome.user.email),
        session=Session(**create_session(outcome.user.id, outcome.user.email, remember_me=data.remember_me)),
        message="Account created successfully!" if outcome.is_new_user else "Login successful!",
        warnings=outcome.auxiliary_errors,
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Get current user."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
