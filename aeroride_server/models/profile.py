# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Profile models: the public profile every user has, plus role-specific extras."""

import enum
from datetime import date

from sqlalchemy import Boolean, Date, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from aeroride_server.models.base import Base
from aeroride_server.models.timestamp import UpdatedMixin


class Role(str, enum.Enum):
    passenger = "passenger"
    driver = "driver"
    airline_admin = "airline_admin"
    super_admin = "super_admin"


ADMIN_ROLES = (Role.super_admin.value, Role.airline_admin.value)


class Profile(Base, UpdatedMixin):
    """User profile with display name and role."""

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    role: Mapped[str] = mapped_column(String(32), default=Role.passenger.value, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    user: Mapped["User"] = relationship("User", back_populates="profile")


class DriverStatus(str, enum.Enum):
    pending = "pending"
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class DriverProfile(Base, UpdatedMixin):
    """Driver onboarding details. Created empty on first login as driver; filled in on registration."""

    __tablename__ = "driver_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    license_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    license_expiry: Mapped[date | None] = mapped_column(Date, nullable=True)
    vehicle_make: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vehicle_model: Mapped[str | None] = mapped_column(String(64), nullable=True)
    vehicle_year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    vehicle_plate: Mapped[str | None] = mapped_column(String(32), nullable=True)
    vehicle_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    vehicle_type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    experience_years: Mapped[int | None] = mapped_column(Integer, nullable=True)
    airport_code: Mapped[str | None] = mapped_column(String(8), nullable=True, index=True)
    # Admin-managed
    status: Mapped[str] = mapped_column(String(16), default=DriverStatus.pending.value, nullable=False)
    background_check_status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    rating: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    total_rides: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @property
    def is_registered(self) -> bool:
        return self.license_number is not None
