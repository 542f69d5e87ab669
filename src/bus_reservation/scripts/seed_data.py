"""
Seed script to populate database with sample data for testing

Usage:
    python -m bus_reservation.scripts.seed_data
"""
import asyncio
from datetime import timedelta
from decimal import Decimal
from typing import List

from passlib.context import CryptContext
from sqlalchemy import func, select

from bus_reservation.core.database import AsyncSessionLocal, init_db
from bus_reservation.core.timeutils import today_local
from bus_reservation.models import Bus, User, UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def create_sample_users(db):
    """Create an admin and two regular users"""
    users_data = [
        {
            "email": "admin@example.com",
            "full_name": "Fleet Admin",
            "phone": "9000000001",
            "password": "admin123",
            "role": UserRole.ADMIN,
        },
        {
            "email": "john@example.com",
            "full_name": "John Doe",
            "phone": "9000000002",
            "password": "password123",
            "role": UserRole.USER,
        },
        {
            "email": "jane@example.com",
            "full_name": "Jane Smith",
            "phone": "9000000003",
            "password": "password123",
            "role": UserRole.USER,
        },
    ]

    users = []
    for user_data in users_data:
        # Check if user already exists
        result = await db.execute(
            select(User).where(User.email == user_data["email"])
        )
        existing_user = result.scalar_one_or_none()

        if existing_user:
            print(f"User {user_data['email']} already exists, skipping...")
            users.append(existing_user)
            continue

        user = User(
            email=user_data["email"],
            full_name=user_data["full_name"],
            phone=user_data["phone"],
            password_hash=pwd_context.hash(user_data["password"]),
            role=user_data["role"],
        )
        db.add(user)
        users.append(user)
        print(f"Created user: {user.email}")

    await db.commit()
    return users


def sample_buses_data():
    """Five departures spread over the next few days"""
    today = today_local()

    return [
        {
            "bus_number": "MH12AB1234",
            "origin": "Mumbai",
            "destination": "Pune",
            "travel_date": today + timedelta(days=1),
            "departure_time": "08:00",
            "total_seats": 40,
            "price": Decimal("500.00"),
        },
        {
            "bus_number": "DL01CD5678",
            "origin": "Delhi",
            "destination": "Jaipur",
            "travel_date": today + timedelta(days=1),
            "departure_time": "10:30",
            "total_seats": 45,
            "price": Decimal("600.00"),
        },
        {
            "bus_number": "KA03EF9012",
            "origin": "Bangalore",
            "destination": "Chennai",
            "travel_date": today + timedelta(days=1),
            "departure_time": "14:15",
            "total_seats": 50,
            "price": Decimal("750.00"),
        },
        {
            "bus_number": "MH14GH3456",
            "origin": "Mumbai",
            "destination": "Goa",
            "travel_date": today + timedelta(days=2),
            "departure_time": "22:00",
            "total_seats": 35,
            "price": Decimal("800.00"),
        },
        {
            "bus_number": "UP16IJ7890",
            "origin": "Delhi",
            "destination": "Agra",
            "travel_date": today + timedelta(days=1),
            "departure_time": "06:30",
            "total_seats": 40,
            "price": Decimal("400.00"),
        },
    ]


async def seed_sample_buses(db, only_if_empty: bool = True) -> List[Bus]:
    """
    Insert the sample buses whose numbers are not taken yet.

    With ``only_if_empty`` (the startup path when SEED_SAMPLE_BUSES is on)
    nothing is inserted once the catalog holds any bus. Returns the buses
    created by this call.
    """
    if only_if_empty:
        count = (await db.execute(select(func.count(Bus.id)))).scalar_one()
        if count:
            return []

    existing = set((await db.execute(select(Bus.bus_number))).scalars().all())

    created = []
    for bus_data in sample_buses_data():
        if bus_data["bus_number"] in existing:
            continue
        bus = Bus(**bus_data, available_seats=bus_data["total_seats"])
        db.add(bus)
        created.append(bus)

    await db.commit()
    return created


async def create_sample_buses(db):
    """Create sample buses, skipping bus numbers that already exist"""
    buses = await seed_sample_buses(db, only_if_empty=False)
    for bus in buses:
        print(f"Created bus: {bus.bus_number} {bus.origin} -> {bus.destination}")
    if len(buses) < len(sample_buses_data()):
        print("Some sample buses already exist, skipped")
    return buses


async def seed_database():
    """Main seeding function"""
    print("Starting database seeding...")
    await init_db()

    async with AsyncSessionLocal() as db:
        try:
            print("\n=== Creating Users ===")
            users = await create_sample_users(db)

            print("\n=== Creating Buses ===")
            buses = await create_sample_buses(db)

            print("\n=== Seeding Complete! ===")
            print(f"Created {len(users)} users")
            print(f"Created {len(buses)} buses")

            for bus in buses:
                print(f"  - {bus.bus_number}: {bus.origin} -> {bus.destination} "
                      f"{bus.travel_date} {bus.departure_time}, {bus.total_seats} seats")

        except Exception as e:
            print(f"Error during seeding: {e}")
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(seed_database())
