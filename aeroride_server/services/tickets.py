# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Ride tickets: a QR code per ride, rendered by an external image service."""

import json
import uuid
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

from aeroride_server.config import settings
from aeroride_server.models import Ride, RideStatus

BOARDABLE_STATUSES = (RideStatus.pending.value, RideStatus.accepted.value, RideStatus.in_progress.value)


def new_qr_code() -> str:
    return str(uuid.uuid4())


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def ticket_data(ride: Ride, passenger_name: str | None, driver_name: str | None, now: datetime | None = None) -> dict:
    """Payload encoded into the QR image."""
    now = now or datetime.now(timezone.utc)
    return {
        "ride_id": ride.id,
        "passenger_name": passenger_name,
        "driver_name": driver_name or "Not assigned",
        "pickup_location": ride.pickup_location,
        "destination_location": ride.destination_location,
        "fare_amount": ride.fare_amount,
        "currency": ride.currency,
        "status": ride.status,
        "qr_code": ride.qr_code,
        "timestamp": now.isoformat(),
    }


def qr_image_url(data: dict, size: int = 300) -> str:
    query = urlencode({"size": f"{size}x{size}", "data": json.dumps(data, separators=(",", ":"))})
    return f"{settings.qr_image_url}?{query}"


def is_ticket_valid(ride: Ride, now: datetime | None = None) -> bool:
    """Valid within the configured hours of the ride time (scheduled, else booked) while boardable."""
    now = now or datetime.now(timezone.utc)
    ride_time = _as_utc(ride.scheduled_time or ride.created_at)
    within_window = abs(now - ride_time) <= timedelta(hours=settings.ticket_valid_hours)
    return within_window and ride.status in BOARDABLE_STATUSES


def apply_scan(ride: Ride, scanner_role: str, now: datetime | None = None) -> bool:
    """
    Advance a ride when its ticket is scanned at the airport.

    The driver scanning an accepted ride starts it; the passenger scanning a ride
    in progress completes it. Any other scan leaves the ride unchanged. Returns
    whether the status changed.
    """
    now = now or datetime.now(timezone.utc)
    if scanner_role == "driver" and ride.status == RideStatus.accepted.value:
        ride.status = RideStatus.in_progress.value
        ride.pickup_time = now
        return True
    if scanner_role == "passenger" and ride.status == RideStatus.in_progress.value:
        ride.status = RideStatus.completed.value
        ride.completion_time = now
        return True
    return False
