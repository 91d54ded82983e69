# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Fare estimation: routed distance (or great-circle fallback) priced per vehicle class."""

import enum
import logging
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from aeroride_server.config import settings
from aeroride_server.errors import UpstreamUnavailable
from aeroride_server.services.directions import Route, get_route

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0


class VehicleClass(str, enum.Enum):
    compact = "compact"
    suv = "suv"
    luxury = "luxury"
    van = "van"
    bus = "bus"


@dataclass(frozen=True)
class Rate:
    base: float
    per_km: float


# Naira
PRICE_TABLE: dict[VehicleClass, Rate] = {
    VehicleClass.compact: Rate(base=500, per_km=150),
    VehicleClass.suv: Rate(base=800, per_km=200),
    VehicleClass.luxury: Rate(base=1500, per_km=400),
    VehicleClass.van: Rate(base=1000, per_km=250),
    VehicleClass.bus: Rate(base=2000, per_km=300),
}
DEFAULT_CLASS = VehicleClass.compact


@dataclass(frozen=True)
class FareQuote:
    distance_km: float
    duration_minutes: int
    fare_amount: float
    currency: str
    vehicle_class: VehicleClass
    source: str  # "directions" or "haversine"


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points in decimal degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def resolve_vehicle_class(value: str | VehicleClass) -> VehicleClass:
    """Unknown classes are priced as compact rather than rejected."""
    try:
        return VehicleClass(value)
    except ValueError:
        logger.info("Unknown vehicle class %r, pricing as %s", value, DEFAULT_CLASS.value)
        return DEFAULT_CLASS


def price(distance_km: float, vehicle_class: str | VehicleClass) -> float:
    rate = PRICE_TABLE[resolve_vehicle_class(vehicle_class)]
    return rate.base + distance_km * rate.per_km


async def estimate_fare(
    pickup: tuple[float, float],
    destination: tuple[float, float],
    vehicle_class: str | VehicleClass,
    route_lookup: Callable[[tuple[float, float], tuple[float, float]], Awaitable[Route]] | None = None,
) -> FareQuote:
    """
    Quote a trip. Uses the directions provider when available; otherwise Haversine
    distance with a 30 km/h average speed. Recomputed on every call.
    """
    lookup = route_lookup or get_route
    vc = resolve_vehicle_class(vehicle_class)
    try:
        route = await lookup(pickup, destination)
        distance_km, duration, source = route.distance_km, route.duration_minutes, "directions"
    except UpstreamUnavailable as e:
        logger.info("Routing unavailable (%s); using great-circle distance", e.message)
        distance_km = haversine_km(pickup[0], pickup[1], destination[0], destination[1])
        duration = math.ceil(distance_km * 2)
        source = "haversine"
    return FareQuote(
        distance_km=distance_km,
        duration_minutes=duration,
        fare_amount=price(distance_km, vc),
        currency=settings.fare_currency,
        vehicle_class=vc,
        source=source,
    )
