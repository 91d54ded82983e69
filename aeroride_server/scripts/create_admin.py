#!/usr/bin/env python3
# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Create or promote a super admin. Run: python -m aeroride_server.scripts.create_admin"""

import asyncio
import sys

from sqlalchemy import select

from aeroride_server.database import async_session_maker, init_db
from aeroride_server.models import Profile, Role, User
from aeroride_server.services.otp import display_name_for


async def main():
    await init_db()
    email = input("Admin email: ").strip().lower()
    if "@" not in email:
        print("A valid email is required")
        sys.exit(1)
    full_name = input(f"Full name [{display_name_for(email)}]: ").strip() or display_name_for(email)

    async with async_session_maker() as session:
        result = await session.execute(select(Profile).where(Profile.email == email))
        profile = result.scalar_one_or_none()
        if profile:
            profile.role = Role.super_admin.value
            profile.is_verified = True
            await session.commit()
            print("Existing user promoted to super admin.")
            return
        user = User(email=email, is_active=True)
        session.add(user)
        await session.flush()
        session.add(
            Profile(
                user_id=user.id,
                email=email,
                full_name=full_name,
                role=Role.super_admin.value,
                is_verified=True,
            )
        )
        await session.commit()
        print("Admin user created. Sign in with a login code sent to this email.")


if __name__ == "__main__":
    asyncio.run(main())
