# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Pydantic schemas for API request/response."""

from datetime import date, datetime
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from aeroride_server.models import DriverStatus, RideStatus


# Auth
class SendCodeRequest(BaseModel):
    # Only an '@' is required; checked by the service so the error body is uniform.
    email: str


class SendCodeResponse(BaseModel):
    success: bool = True
    message: str
    can_resend_at: datetime = Field(alias="canResendAt")

    model_config = ConfigDict(populate_by_name=True)


class VerifyCodeRequest(BaseModel):
    email: str
    code: str
    remember_me: bool = Field(default=False, validation_alias=AliasChoices("rememberMe", "remember_me"))
    # Self-service signup may only pick these roles
    role: Literal["passenger", "driver"] | None = None


class SessionUser(BaseModel):
    id: int
    email: str


class Session(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class VerifyCodeResponse(BaseModel):
    success: bool = True
    is_new_user: bool = Field(alias="isNewUser")
    user: SessionUser
    session: Session
    message: str
    warnings: list[str] = []

    model_config = ConfigDict(populate_by_name=True)


class UserResponse(BaseModel):
    id: int
    email: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Profiles
class ProfileResponse(BaseModel):
    user_id: int
    email: str
    full_name: str
    phone: str | None = None
    avatar_url: str | None = None
    role: str
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    avatar_url: str | None = Field(default=None, max_length=512)
    role: Literal["passenger", "driver", "airline_admin", "super_admin"] | None = None


# Drivers
class DriverCreate(BaseModel):
    license_number: str = Field(min_length=1, max_length=64)
    license_expiry: date
    vehicle_type: str = Field(min_length=1, max_length=16)
    vehicle_make: str = Field(min_length=1, max_length=64)
    vehicle_model: str = Field(min_length=1, max_length=64)
    vehicle_year: int = Field(ge=1950, le=2100)
    vehicle_plate: str = Field(min_length=1, max_length=32)
    vehicle_color: str | None = Field(default=None, max_length=32)
    experience_years: int | None = Field(default=None, ge=0)
    airport_code: str = Field(min_length=3, max_length=8)


class DriverUpdate(BaseModel):
    license_number: str | None = Field(default=None, min_length=1, max_length=64)
    license_expiry: date | None = None
    vehicle_type: str | None = Field(default=None, max_length=16)
    vehicle_make: str | None = Field(default=None, max_length=64)
    vehicle_model: str | None = Field(default=None, max_length=64)
    vehicle_year: int | None = Field(default=None, ge=1950, le=2100)
    vehicle_plate: str | None = Field(default=None, max_length=32)
    vehicle_color: str | None = Field(default=None, max_length=32)
    experience_years: int | None = Field(default=None, ge=0)
    airport_code: str | None = Field(default=None, min_length=3, max_length=8)
    is_available: bool | None = None
    # Admin only; ignored for other callers
    status: DriverStatus | None = None
    background_check_status: Literal["pending", "approved", "rejected"] | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    total_rides: int | None = Field(default=None, ge=0)


class DriverResponse(BaseModel):
    id: int
    user_id: int
    full_name: str | None = None
    license_number: str | None = None
    license_expiry: date | None = None
    vehicle_type: str | None = None
    vehicle_make: str | None = None
    vehicle_model: str | None = None
    vehicle_year: int | None = None
    vehicle_plate: str | None = None
    vehicle_color: str | None = None
    experience_years: int | None = None
    airport_code: str | None = None
    status: str
    background_check_status: str
    rating: float
    total_rides: int
    is_available: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Fares
class Coordinates(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class FareEstimateRequest(BaseModel):
    pickup: Coordinates
    destination: Coordinates
    vehicle_type: str


class FareEstimateResponse(BaseModel):
    distance_km: float
    estimated_duration: int
    fare_amount: float
    currency: str
    vehicle_type: str
    source: str


# Rides
class RideCreate(BaseModel):
    airport_code: str = Field(min_length=3, max_length=8)
    pickup_location: str = Field(min_length=1)
    pickup_latitude: float = Field(ge=-90, le=90)
    pickup_longitude: float = Field(ge=-180, le=180)
    destination_location: str = Field(min_length=1)
    destination_latitude: float = Field(ge=-90, le=90)
    destination_longitude: float = Field(ge=-180, le=180)
    vehicle_type: str
    passenger_count: int = Field(default=1, ge=1, le=60)
    special_requests: str | None = None
    scheduled_time: datetime | None = None


class RideUpdate(BaseModel):
    status: RideStatus | None = None
    driver_id: int | None = None
    scheduled_time: datetime | None = None
    special_requests: str | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    review: str | None = None


class RideResponse(BaseModel):
    id: int
    passenger_id: int
    driver_id: int | None = None
    airport_code: str
    pickup_location: str
    pickup_latitude: float
    pickup_longitude: float
    destination_location: str
    destination_latitude: float
    destination_longitude: float
    distance_km: float
    estimated_duration: int
    fare_amount: float
    currency: str
    vehicle_type: str
    passenger_count: int
    special_requests: str | None = None
    scheduled_time: datetime | None = None
    pickup_time: datetime | None = None
    completion_time: datetime | None = None
    status: str
    qr_code: str | None = None
    rating: int | None = None
    review: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Tickets
class TicketResponse(BaseModel):
    qr_code: str
    qr_code_url: str
    qr_data: dict
    ride: RideResponse


class TicketVerification(BaseModel):
    valid: bool
    qr_code: str
    verification_time: datetime
    ride: RideResponse


class TicketScanRequest(BaseModel):
    qr_code: str = Field(min_length=1)


class TicketScan(BaseModel):
    ride_id: int
    scanned_by: int
    scanner_role: str
    scanned_at: datetime


class TicketScanResponse(BaseModel):
    message: str
    status_changed: bool
    ride: RideResponse
    scan: TicketScan
