# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Passwordless login: issue emailed one-time codes and verify them."""

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.config import settings
from aeroride_server.errors import DeliveryFailed, InvalidOrExpiredCode, MalformedCode, MalformedInput
from aeroride_server.models import DriverProfile, OneTimeCode, Profile, Role, User
from aeroride_server.rate_limit import IssueRateLimiter
from aeroride_server.services.email import EmailDeliveryError, login_code_html, send_email

logger = logging.getLogger(__name__)

CODE_LENGTH = 6
CODE_MIN = 100000
CODE_MAX = 999999


@dataclass
class IssueResult:
    email: str
    expires_at: datetime
    can_resend_at: datetime


@dataclass
class VerificationOutcome:
    """Result of a successful verification.

    ``auxiliary_errors`` lists best-effort writes (role-specific profiles) that failed;
    the login itself succeeded regardless.
    """

    user: User
    profile: Profile
    is_new_user: bool
    auxiliary_errors: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.auxiliary_errors)


def normalize_email(identifier: str | None) -> str:
    """Strip and lower-case; requires an '@'."""
    email = (identifier or "").strip().lower()
    if "@" not in email:
        raise MalformedInput()
    return email


def generate_code() -> str:
    """Uniform 6-digit code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def display_name_for(email: str) -> str:
    return email.split("@")[0] or email


async def delete_expired_codes(db: AsyncSession, now: datetime | None = None) -> int:
    """Remove codes past expiry. Not needed for correctness, keeps the table small."""
    now = now or datetime.now(timezone.utc)
    result = await db.execute(delete(OneTimeCode).where(OneTimeCode.expires_at < now))
    return result.rowcount or 0


async def issue_code(
    db: AsyncSession,
    identifier: str,
    limiter: IssueRateLimiter,
    now: datetime | None = None,
) -> IssueResult:
    """
    Generate, store and email a login code.

    Raises MalformedInput, RateLimited, or DeliveryFailed. On delivery failure the
    stored code is deleted so no unreachable code stays valid.
    """
    email = normalize_email(identifier)
    limiter.hit(email)
    now = now or datetime.now(timezone.utc)

    await delete_expired_codes(db, now)
    code = generate_code()
    expires_at = now + timedelta(minutes=settings.otp_expire_minutes)
    otp = OneTimeCode(email=email, code=code, created_at=now, expires_at=expires_at, is_used=False, attempts=0)
    db.add(otp)
    await db.commit()

    try:
        await send_email(
            email,
            "Your AeroRide Nexus Login Code",
            f"Your login code is: {code}\n\nThe code expires in {settings.otp_expire_minutes} minutes.\n\n"
            "If you didn't request this code, please ignore this email.",
            html_body=login_code_html(code, settings.otp_expire_minutes),
        )
    except EmailDeliveryError as e:
        await db.execute(delete(OneTimeCode).where(OneTimeCode.id == otp.id))
        await db.commit()
        raise DeliveryFailed() from e

    logger.info("Issued login code for %s (expires %s)", email, expires_at.isoformat())
    return IssueResult(
        email=email,
        expires_at=expires_at,
        can_resend_at=now + timedelta(seconds=settings.otp_resend_window_seconds),
    )


async def consume_code(db: AsyncSession, email: str, code: str, now: datetime) -> OneTimeCode:
    """Mark the newest valid matching code used. Raises InvalidOrExpiredCode."""
    result = await db.execute(
        select(OneTimeCode)
        .where(
            OneTimeCode.email == email,
            OneTimeCode.code == code,
            OneTimeCode.is_used.is_(False),
            OneTimeCode.expires_at >= now,
        )
        .order_by(OneTimeCode.created_at.desc(), OneTimeCode.id.desc())
        .limit(1)
    )
    otp = result.scalar_one_or_none()
    if not otp:
        raise InvalidOrExpiredCode()
    # Guarded update: only one concurrent verifier can flip is_used.
    consumed = await db.execute(
        update(OneTimeCode)
        .where(OneTimeCode.id == otp.id, OneTimeCode.is_used.is_(False))
        .values(is_used=True)
        .execution_options(synchronize_session=False)
    )
    if consumed.rowcount != 1:
        raise InvalidOrExpiredCode()
    return otp


async def create_role_profile(db: AsyncSession, user: User, role: str) -> None:
    """Create the auxiliary record a new user of this role starts with, if any."""
    if role == Role.driver.value:
        db.add(DriverProfile(user_id=user.id))
        await db.flush()


async def _existing_user_outcome(db: AsyncSession, email: str) -> VerificationOutcome | None:
    result = await db.execute(select(Profile).where(Profile.email == email))
    profile = result.scalar_one_or_none()
    if not profile:
        return None
    user = await db.get(User, profile.user_id)
    return VerificationOutcome(user=user, profile=profile, is_new_user=False)


async def verify_code(
    db: AsyncSession,
    identifier: str,
    code: str,
    role: str | None = None,
    now: datetime | None = None,
) -> VerificationOutcome:
    """
    Verify a submitted code and resolve (or create) the user.

    The code consumption and the user/profile rows are committed before any
    role-specific record is attempted; those are best-effort. A concurrent
    signup for the same email resolves to the account that won the insert.
    """
    email = normalize_email(identifier)
    code = code or ""
    if len(code) != CODE_LENGTH:
        raise MalformedCode()
    now = now or datetime.now(timezone.utc)

    await consume_code(db, email, code, now)
    await db.commit()

    existing = await _existing_user_outcome(db, email)
    if existing:
        logger.info("Login code verified for existing user %s", existing.user.id)
        return existing

    role = role or settings.default_role
    try:
        user = User(email=email, is_active=True)
        db.add(user)
        await db.flush()
        profile = Profile(user_id=user.id, email=email, full_name=display_name_for(email), role=role)
        db.add(profile)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await _existing_user_outcome(db, email)
        if not existing:
            raise
        logger.info("Concurrent signup for %s resolved to user %s", email, existing.user.id)
        return existing
    logger.info("Created user %s (%s) from login code", user.id, role)

    outcome = VerificationOutcome(user=user, profile=profile, is_new_user=True)
    try:
        await create_role_profile(db, user, role)
        await db.commit()
    except Exception as e:
        user_id = user.id
        await db.rollback()
        logger.exception("Role profile setup failed for user %s: %s", user_id, e)
        outcome.auxiliary_errors.append(f"{role} profile setup failed")
        await db.refresh(user)
        await db.refresh(profile)
    return outcome
