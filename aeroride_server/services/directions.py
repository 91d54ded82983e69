# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Google Directions API integration for routed trip distance and duration."""

import logging
import math
from dataclasses import dataclass

import httpx

from aeroride_server.config import settings
from aeroride_server.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    distance_km: float
    duration_minutes: int


async def get_route(
    origin: tuple[float, float],
    destination: tuple[float, float],
    api_key: str | None = None,
) -> Route:
    """
    Fetch the first route leg between two (lat, lng) points.
    Raises UpstreamUnavailable when no key is configured, the request fails,
    or the provider returns no route.
    """
    key = api_key or settings.google_maps_api_key
    if not key:
        raise UpstreamUnavailable("Directions API key not configured")
    try:
        async with httpx.AsyncClient(timeout=settings.directions_timeout_seconds) as client:
            r = await client.get(
                settings.directions_url,
                params={
                    "origin": f"{origin[0]},{origin[1]}",
                    "destination": f"{destination[0]},{destination[1]}",
                    "key": key,
                },
            )
            r.raise_for_status()
            data = r.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Directions request failed: %s", e)
        raise UpstreamUnavailable("Directions request failed") from e

    routes = data.get("routes") if isinstance(data, dict) else None
    if not routes:
        raise UpstreamUnavailable(f"No route found (status={data.get('status') if isinstance(data, dict) else None})")
    try:
        leg = routes[0]["legs"][0]
        meters = float(leg["distance"]["value"])
        seconds = float(leg["duration"]["value"])
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise UpstreamUnavailable("Malformed directions response") from e
    return Route(distance_km=meters / 1000, duration_minutes=math.ceil(seconds / 60))
