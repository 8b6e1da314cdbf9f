"""
Database seeding script for local development.

Creates an admin, two drivers, two trucks, a trailer and a maintenance rule,
then prints bearer tokens for the seeded users (tokens are normally issued
by the identity provider).

Run with: python -m backend.seed_fleet
"""

import asyncio
from sqlalchemy import select

from backend.app.core.jwt import create_access_token
from backend.app.db.session import AsyncSessionLocal, engine, Base
from backend.app.models.user import User
from backend.app.models.truck import Truck
from backend.app.models.trailer import Trailer
from backend.app.models.maintenance_rule import MaintenanceRule
from backend.app.models.journey import Journey, JourneyLog  # noqa: F401
from backend.app.models.truck_lock import TruckLock  # noqa: F401
from backend.app.models.audit_log import AuditLog  # noqa: F401
from backend.app.models.enums import UserRole, MaintenanceType, AssetType


def _token_for(user: User) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id, "role": user.role.value})


async def seed_fleet():
    """
    Seed the fleet once.

    Creates:
    - 1 admin, 2 drivers
    - 2 trucks, 1 trailer
    - 1 oil-change rule for all assets
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting fleet seeding...")

        result = await db.execute(select(User).where(User.email == "admin@fleet.local"))
        if result.scalar_one_or_none():
            print("ℹ️  Fleet already seeded, skipping")
            return

        users = [
            User(name="Fleet Admin", email="admin@fleet.local", role=UserRole.ADMIN),
            User(name="Driver One", email="driver1@fleet.local", role=UserRole.DRIVER),
            User(name="Driver Two", email="driver2@fleet.local", role=UserRole.DRIVER),
        ]
        db.add_all(users)
        db.add_all([
            Truck(license_plate="TRK-001", model="Volvo FH16", capacity=40000, mileage=120000),
            Truck(license_plate="TRK-002", model="Scania R500", capacity=38000, mileage=85000),
            Trailer(license_plate="TRL-001", type="Flatbed", capacity=30000),
            MaintenanceRule(
                name="Oil change", type=MaintenanceType.OIL, applies_to=AssetType.ALL,
                threshold_km=15000, threshold_days=180
            ),
        ])
        await db.commit()

        print("✅ Fleet seeded\n")
        for user in users:
            print(f"  - {user.role.value:<7} {user.email:<22} token: {_token_for(user)}")


if __name__ == "__main__":
    asyncio.run(seed_fleet())
