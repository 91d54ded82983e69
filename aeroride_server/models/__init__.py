# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Database models."""

from aeroride_server.models.base import Base
from aeroride_server.models.user import User
from aeroride_server.models.profile import ADMIN_ROLES, DriverProfile, DriverStatus, Profile, Role
from aeroride_server.models.one_time_code import OneTimeCode
from aeroride_server.models.ride import Ride, RideStatus

__all__ = [
    "Base",
    "User",
    "Profile",
    "DriverProfile",
    "DriverStatus",
    "Role",
    "ADMIN_ROLES",
    "OneTimeCode",
    "Ride",
    "RideStatus",
]
