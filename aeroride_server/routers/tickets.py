# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ride ticket API routes: QR code generation, verification and scanning."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.auth import get_current_user_id
from aeroride_server.database import get_db
from aeroride_server.models import Profile, Ride
from aeroride_server.api.schemas import (
    RideResponse,
    TicketResponse,
    TicketScan,
    TicketScanRequest,
    TicketScanResponse,
    TicketVerification,
)
from aeroride_server.routers.rides import get_participant_ride
from aeroride_server.services.tickets import apply_scan, is_ticket_valid, new_qr_code, qr_image_url, ticket_data

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])


async def _full_name(user_id: int | None, db: AsyncSession) -> str | None:
    if user_id is None:
        return None
    return await db.scalar(select(Profile.full_name).where(Profile.user_id == user_id))


@router.get("/verify", response_model=TicketVerification)
async def verify_ticket(
    qr_code: str = Query(..., min_length=1),
    _user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TicketVerification:
    """Check a scanned ticket. 404 for unknown codes; `valid` reflects time window and status."""
    result = await db.execute(select(Ride).where(Ride.qr_code == qr_code))
    ride = result.scalar_one_or_none()
    if not ride:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid QR code")
    now = datetime.now(timezone.utc)
    return TicketVerification(
        valid=is_ticket_valid(ride, now),
        qr_code=qr_code,
        verification_time=now,
        ride=RideResponse.model_validate(ride),
    )


@router.post("/scan", response_model=TicketScanResponse)
async def scan_ticket(
    data: TicketScanRequest,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TicketScanResponse:
    """Scan a ticket. The scanner's role is their part in the ride; outsiders get 403."""
    result = await db.execute(select(Ride).where(Ride.qr_code == data.qr_code))
    ride = result.scalar_one_or_none()
    if not ride:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invalid QR code")
    if ride.driver_id == user_id:
        scanner_role = "driver"
    elif ride.passenger_id == user_id:
        scanner_role = "passenger"
    else:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant of this ride")

    now = datetime.now(timezone.utc)
    changed = apply_scan(ride, scanner_role, now)
    if changed:
        await db.commit()
        await db.refresh(ride)
    logger.info("Ticket for ride %s scanned by %s %s; status %s", ride.id, scanner_role, user_id, ride.status)
    return TicketScanResponse(
        message="QR code scanned successfully",
        status_changed=changed,
        ride=RideResponse.model_validate(ride),
        scan=TicketScan(ride_id=ride.id, scanned_by=user_id, scanner_role=scanner_role, scanned_at=now),
    )


@router.get("/{ride_id}", response_model=TicketResponse)
async def get_ticket(
    ride_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TicketResponse:
    """Ticket for a ride the caller participates in. Assigns a QR code if missing."""
    ride = await get_participant_ride(ride_id, user_id, db)
    if not ride.qr_code:
        ride.qr_code = new_qr_code()
        await db.commit()
        await db.refresh(ride)
    data = ticket_data(
        ride,
        passenger_name=await _full_name(ride.passenger_id, db),
        driver_name=await _full_name(ride.driver_id, db),
    )
    return TicketResponse(
        qr_code=ride.qr_code,
        qr_code_url=qr_image_url(data),
        qr_data=data,
        ride=RideResponse.model_validate(ride),
    )
