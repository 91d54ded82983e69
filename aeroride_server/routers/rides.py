# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ride booking API routes."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from aeroride_server.auth import get_current_user_id
from aeroride_server.database import get_db
from aeroride_server.models import Ride, RideStatus
from aeroride_server.api.schemas import (
    FareEstimateRequest,
    FareEstimateResponse,
    RideCreate,
    RideResponse,
    RideUpdate,
)
from aeroride_server.services.fares import estimate_fare
from aeroride_server.services.tickets import new_qr_code

router = APIRouter(prefix="/rides", tags=["rides"])


async def get_participant_ride(ride_id: int, user_id: int, db: AsyncSession) -> Ride:
    """Load a ride the user is passenger or driver of; 404 otherwise."""
    result = await db.execute(
        select(Ride).where(
            Ride.id == ride_id,
            or_(Ride.passenger_id == user_id, Ride.driver_id == user_id),
        )
    )
    ride = result.scalar_one_or_none()
    if not ride:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Ride not found")
    return ride


@router.post("/estimate", response_model=FareEstimateResponse)
async def estimate(data: FareEstimateRequest) -> FareEstimateResponse:
    """Quote distance, duration and fare without booking."""
    quote = await estimate_fare(
        (data.pickup.latitude, data.pickup.longitude),
        (data.destination.latitude, data.destination.longitude),
        data.vehicle_type,
    )
    return FareEstimateResponse(
        distance_km=quote.distance_km,
        estimated_duration=quote.duration_minutes,
        fare_amount=quote.fare_amount,
        currency=quote.currency,
        vehicle_type=quote.vehicle_class.value,
        source=quote.source,
    )


@router.post("", response_model=RideResponse, status_code=status.HTTP_201_CREATED)
async def create_ride(
    data: RideCreate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RideResponse:
    """Book a ride. Distance, duration and fare are computed server-side."""
    quote = await estimate_fare(
        (data.pickup_latitude, data.pickup_longitude),
        (data.destination_latitude, data.destination_longitude),
        data.vehicle_type,
    )
    ride = Ride(
        passenger_id=user_id,
        airport_code=data.airport_code.upper(),
        pickup_location=data.pickup_location,
        pickup_latitude=data.pickup_latitude,
        pickup_longitude=data.pickup_longitude,
        destination_location=data.destination_location,
        destination_latitude=data.destination_latitude,
        destination_longitude=data.destination_longitude,
        distance_km=quote.distance_km,
        estimated_duration=quote.duration_minutes,
        fare_amount=quote.fare_amount,
        currency=quote.currency,
        vehicle_type=quote.vehicle_class.value,
        passenger_count=data.passenger_count,
        special_requests=data.special_requests,
        scheduled_time=data.scheduled_time,
        status=RideStatus.pending.value,
        qr_code=new_qr_code(),
    )
    db.add(ride)
    await db.commit()
    await db.refresh(ride)
    return RideResponse.model_validate(ride)


@router.get("", response_model=list[RideResponse])
async def list_rides(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> list[RideResponse]:
    """Rides the current user booked or drives, newest first."""
    result = await db.execute(
        select(Ride)
        .where(or_(Ride.passenger_id == user_id, Ride.driver_id == user_id))
        .order_by(Ride.created_at.desc(), Ride.id.desc())
    )
    return [RideResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RideResponse:
    ride = await get_participant_ride(ride_id, user_id, db)
    return RideResponse.model_validate(ride)


@router.put("/{ride_id}", response_model=RideResponse)
async def update_ride(
    ride_id: int,
    data: RideUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> RideResponse:
    """Update status, driver, schedule or review. Participants only."""
    ride = await get_participant_ride(ride_id, user_id, db)
    changes = data.model_dump(exclude_unset=True)
    if changes.get("status") is None:
        changes.pop("status", None)
    else:
        changes["status"] = changes["status"].value
        if changes["status"] == RideStatus.completed.value and ride.completion_time is None:
            ride.completion_time = datetime.now(timezone.utc)
    for key, value in changes.items():
        setattr(ride, key, value)
    await db.commit()
    await db.refresh(ride)
    return RideResponse.model_validate(ride)


@router.delete("/{ride_id}")
async def delete_ride(
    ride_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Delete a ride. Only the passenger who booked it may."""
    ride = await get_participant_ride(ride_id, user_id, db)
    if ride.passenger_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the passenger can delete a ride")
    await db.delete(ride)
    await db.commit()
    return {"message": "Ride deleted successfully"}
