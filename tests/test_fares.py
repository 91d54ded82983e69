# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Fare estimation tests. Routing is faked; no network access."""

import math

import httpx
import pytest

from aeroride_server.errors import UpstreamUnavailable
from aeroride_server.services import directions
from aeroride_server.services.directions import Route, get_route
from aeroride_server.services.fares import PRICE_TABLE, VehicleClass, estimate_fare, haversine_km

pytestmark = pytest.mark.anyio

LAGOS_AIRPORT = (6.5774, 3.3210)
# 10 km due north along the same meridian
TEN_KM_NORTH = (LAGOS_AIRPORT[0] + math.degrees(10 / 6371), LAGOS_AIRPORT[1])


async def routing_down(origin, destination):
    raise UpstreamUnavailable("test: routing disabled")


def test_haversine_along_meridian():
    assert haversine_km(*LAGOS_AIRPORT, *TEN_KM_NORTH) == pytest.approx(10.0, abs=1e-9)


def test_haversine_same_point_is_zero():
    assert haversine_km(*LAGOS_AIRPORT, *LAGOS_AIRPORT) == 0.0


def test_every_class_has_distinct_rates():
    rates = {(r.base, r.per_km) for r in PRICE_TABLE.values()}
    assert len(rates) == len(VehicleClass)


@pytest.mark.parametrize("vehicle", [v.value for v in VehicleClass])
async def test_zero_displacement_costs_base_fare(vehicle):
    quote = await estimate_fare(LAGOS_AIRPORT, LAGOS_AIRPORT, vehicle, route_lookup=routing_down)
    assert quote.distance_km == 0
    assert quote.duration_minutes == 0
    assert quote.fare_amount == PRICE_TABLE[VehicleClass(vehicle)].base


async def test_suv_ten_km_with_routing_unavailable():
    quote = await estimate_fare(LAGOS_AIRPORT, TEN_KM_NORTH, "suv", route_lookup=routing_down)
    assert quote.source == "haversine"
    assert quote.distance_km == pytest.approx(10.0, abs=1e-9)
    assert quote.duration_minutes == math.ceil(quote.distance_km * 2)
    assert quote.fare_amount == pytest.approx(800 + 10 * 200)
    assert quote.currency == "NGN"


async def test_routed_distance_is_preferred():
    async def routed(origin, destination):
        return Route(distance_km=12.5, duration_minutes=25)

    quote = await estimate_fare(LAGOS_AIRPORT, TEN_KM_NORTH, "luxury", route_lookup=routed)
    assert quote.source == "directions"
    assert quote.distance_km == 12.5
    assert quote.duration_minutes == 25
    assert quote.fare_amount == pytest.approx(1500 + 12.5 * 400)


async def test_unknown_class_priced_as_compact():
    quote = await estimate_fare(LAGOS_AIRPORT, TEN_KM_NORTH, "hovercraft", route_lookup=routing_down)
    assert quote.vehicle_class is VehicleClass.compact
    assert quote.fare_amount == pytest.approx(500 + 10 * 150)


async def test_no_api_key_falls_back():
    # Test settings carry no Google Maps key
    quote = await estimate_fare(LAGOS_AIRPORT, TEN_KM_NORTH, "van")
    assert quote.source == "haversine"
    assert quote.fare_amount == pytest.approx(1000 + 10 * 250)


def _mock_directions(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(directions.httpx, "AsyncClient", client_factory)


async def test_get_route_parses_first_leg(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["origin"] == "6.5,3.3"
        return httpx.Response(200, json={
            "status": "OK",
            "routes": [{"legs": [{"distance": {"value": 15400}, "duration": {"value": 1234}}]}],
        })

    _mock_directions(monkeypatch, handler)
    route = await get_route((6.5, 3.3), (6.6, 3.4), api_key="test-key")
    assert route.distance_km == pytest.approx(15.4)
    assert route.duration_minutes == 21


async def test_get_route_empty_result_is_unavailable(monkeypatch):
    _mock_directions(monkeypatch, lambda request: httpx.Response(200, json={"status": "ZERO_RESULTS", "routes": []}))
    with pytest.raises(UpstreamUnavailable):
        await get_route((6.5, 3.3), (6.6, 3.4), api_key="test-key")


async def test_get_route_http_error_is_unavailable(monkeypatch):
    _mock_directions(monkeypatch, lambda request: httpx.Response(500))
    with pytest.raises(UpstreamUnavailable):
        await get_route((6.5, 3.3), (6.6, 3.4), api_key="test-key")
