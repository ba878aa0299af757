"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample passengers and 4 sample drivers
  - 6 sample vehicles around Dhaka (mix of approved and pending)
  - 4 sample bookings (mix of PENDING, CONFIRMED, COMPLETED)
"""

import asyncio
from datetime import timedelta

from sqlalchemy import text

from return_vehicle.domain.clock import utc_now
from return_vehicle.domain.enums import (
    BookingStatus,
    LuggageSize,
    PaymentStatus,
    UserRole,
    VehicleFeature,
    VehicleStatus,
    VehicleType,
)
from return_vehicle.domain.pricing import calculate_price
from return_vehicle.infrastructure.database import async_session_factory, engine
from return_vehicle.infrastructure.models import BookingModel, UserModel, VehicleModel


PASSENGERS = [
    {"name": "Nusrat Jahan", "email": "nusrat@example.com", "phone": "+8801711000001"},
    {"name": "Tanvir Ahmed", "email": "tanvir@example.com", "phone": "+8801711000002"},
    {"name": "Farhana Islam", "email": "farhana@example.com", "phone": "+8801711000003"},
    {"name": "Rafiq Hasan", "email": "rafiq@example.com", "phone": ""},
    {"name": "Sadia Rahman", "email": "sadia@example.com", "phone": "+8801711000005"},
    {"name": "Imran Hossain", "email": "imran@example.com", "phone": ""},
]

DRIVERS = [
    {"name": "Kamal Uddin", "email": "kamal@example.com", "phone": "+8801811000001"},
    {"name": "Jamal Mia", "email": "jamal@example.com", "phone": "+8801811000002"},
    {"name": "Abdul Karim", "email": "karim@example.com", "phone": "+8801811000003"},
    {"name": "Shirin Akter", "email": "shirin@example.com", "phone": "+8801811000004"},
]

VEHICLES = [
    # (driver index, fields, features)
    (
        0,
        {
            "type": VehicleType.CAR, "brand": "Toyota", "model": "Axio", "year": 2019,
            "plate_number": "DHAKA-GA-11-2345", "color": "White",
            "passenger_capacity": 4, "luggage_size": LuggageSize.MEDIUM,
            "base_price": 100, "price_per_km": 15, "price_per_hour": 60, "minimum_fare": 150,
            "city": "Dhaka", "area": "Gulshan", "latitude": 23.7925, "longitude": 90.4078,
            "status": VehicleStatus.APPROVED, "rating_average": 4.7, "rating_count": 23,
        },
        [VehicleFeature.AC, VehicleFeature.GPS, VehicleFeature.BLUETOOTH],
    ),
    (
        0,
        {
            "type": VehicleType.CAR, "brand": "Honda", "model": "Grace", "year": 2021,
            "plate_number": "DHAKA-GA-12-0042", "color": "Silver",
            "passenger_capacity": 4, "luggage_size": LuggageSize.SMALL,
            "base_price": 120, "price_per_km": 18, "price_per_hour": 80, "minimum_fare": 200,
            "city": "Dhaka", "area": "Banani", "latitude": 23.7937, "longitude": 90.4066,
            "status": VehicleStatus.APPROVED, "rating_average": 4.9, "rating_count": 8,
        },
        [VehicleFeature.AC, VehicleFeature.WIFI, VehicleFeature.USB_CHARGING],
    ),
    (
        1,
        {
            "type": VehicleType.BUS, "brand": "Hino", "model": "AK1J", "year": 2016,
            "plate_number": "DHAKA-BA-14-7781", "color": "Blue",
            "passenger_capacity": 40, "luggage_size": LuggageSize.EXTRA_LARGE,
            "base_price": 1500, "price_per_km": 45, "price_per_hour": 500, "minimum_fare": 3000,
            "city": "Dhaka", "area": "Mohakhali", "latitude": 23.7781, "longitude": 90.4050,
            "status": VehicleStatus.APPROVED, "rating_average": 4.2, "rating_count": 51,
        },
        [VehicleFeature.AC, VehicleFeature.MUSIC_SYSTEM],
    ),
    (
        2,
        {
            "type": VehicleType.AMBULANCE, "brand": "Toyota", "model": "HiAce", "year": 2018,
            "plate_number": "DHAKA-CHA-53-1001", "color": "White",
            "passenger_capacity": 3, "luggage_size": LuggageSize.LARGE,
            "base_price": 800, "price_per_km": 30, "price_per_hour": 300, "minimum_fare": 1000,
            "city": "Dhaka", "area": "Dhanmondi", "latitude": 23.7461, "longitude": 90.3742,
            "status": VehicleStatus.APPROVED, "rating_average": 4.8, "rating_count": 12,
        },
        [VehicleFeature.AC, VehicleFeature.FIRST_AID_KIT, VehicleFeature.GPS],
    ),
    (
        3,
        {
            "type": VehicleType.TRUCK, "brand": "Tata", "model": "Ace", "year": 2020,
            "plate_number": "CTG-TA-11-5566", "color": "Red",
            "passenger_capacity": 2, "luggage_size": LuggageSize.EXTRA_LARGE,
            "base_price": 500, "price_per_km": 25, "price_per_hour": 150, "minimum_fare": 700,
            "city": "Chattogram", "area": "Agrabad", "latitude": 22.3248, "longitude": 91.8125,
            "status": VehicleStatus.APPROVED, "rating_average": 4.0, "rating_count": 5,
        },
        [VehicleFeature.GPS],
    ),
    (
        3,
        {
            "type": VehicleType.MOTORCYCLE, "brand": "Bajaj", "model": "Pulsar", "year": 2022,
            "plate_number": "CTG-HA-12-0909", "color": "Black",
            "passenger_capacity": 1, "luggage_size": LuggageSize.SMALL,
            "base_price": 40, "price_per_km": 8, "price_per_hour": 30, "minimum_fare": 60,
            "city": "Chattogram", "area": "Nasirabad", "latitude": 22.3668, "longitude": 91.8216,
            "status": VehicleStatus.PENDING,
        },
        [],
    ),
]


def _documents(plate: str) -> dict:
    """Registration, insurance and fitness numbers derived from the plate."""
    suffix = plate.replace("-", "")
    return {
        "registration": {"number": f"REG-{suffix}"},
        "insurance": {"number": f"INS-{suffix}", "provider": "Green Delta"},
        "fitness": {"number": f"FIT-{suffix}"},
    }

async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        now = utc_now()

        # ── Users ─────────────────────────────────────────────────────
        passengers = []
        for i, u in enumerate(PASSENGERS, start=1):
            m = UserModel(
                external_uid=f"seed-passenger-{i}",
                role=UserRole.PASSENGER,
                profile_complete=bool(u["phone"]),
                **u,
            )
            session.add(m)
            passengers.append(m)
        drivers = []
        for i, u in enumerate(DRIVERS, start=1):
            m = UserModel(
                external_uid=f"seed-driver-{i}",
                role=UserRole.DRIVER,
                is_verified=True,
                profile_complete=True,
                driver_details={"licenseNumber": f"DL-{1000 + i}", "experience": 3 + i},
                **u,
            )
            session.add(m)
            drivers.append(m)
        await session.flush()
        print(f"  Created {len(passengers)} passengers and {len(drivers)} drivers")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicles = []
        for driver_index, fields, features in VEHICLES:
            m = VehicleModel(driver=drivers[driver_index], **fields)
            if m.status == VehicleStatus.APPROVED:
                m.approved_at = now
                m.documents = _documents(fields["plate_number"])
            m.set_features([f.value for f in features])
            session.add(m)
            vehicles.append(m)
        await session.flush()
        print(f"  Created {len(vehicles)} vehicles")

        # ── Bookings ──────────────────────────────────────────────────
        bookings_data = [
            {
                "passenger": 0, "vehicle": 0, "status": BookingStatus.PENDING,
                "pickup": ("House 12, Road 7, Gulshan", 23.7925, 90.4078),
                "dropoff": ("Hazrat Shahjalal Airport", 23.8433, 90.3978),
                "distance": 9.5, "duration": 35, "in_hours": 26,
            },
            {
                "passenger": 1, "vehicle": 2, "status": BookingStatus.CONFIRMED,
                "pickup": ("Mohakhali Bus Terminal", 23.7781, 90.4050),
                "dropoff": ("Cox's Bazar Sea Beach", 21.4272, 92.0058),
                "distance": 395, "duration": 600, "in_hours": 48,
            },
            {
                "passenger": 2, "vehicle": 3, "status": BookingStatus.CONFIRMED,
                "pickup": ("Square Hospital, Panthapath", 23.7526, 90.3816),
                "dropoff": ("Dhanmondi 27", 23.7561, 90.3740),
                "distance": 2.5, "duration": 12, "in_hours": 5,
            },
            {
                "passenger": 4, "vehicle": 1, "status": BookingStatus.COMPLETED,
                "pickup": ("Banani 11", 23.7937, 90.4066),
                "dropoff": ("Bashundhara City", 23.7509, 90.3905),
                "distance": 7.0, "duration": 30, "in_hours": -72,
            },
        ]

        for b in bookings_data:
            vehicle = vehicles[b["vehicle"]]
            pricing = calculate_price(vehicle.rate_card, b["distance"], b["duration"])
            scheduled_at = now + timedelta(hours=b["in_hours"])
            booking = BookingModel(
                user=passengers[b["passenger"]],
                driver=vehicle.driver,
                vehicle=vehicle,
                pickup_address=b["pickup"][0],
                pickup_lat=b["pickup"][1],
                pickup_lng=b["pickup"][2],
                dropoff_address=b["dropoff"][0],
                dropoff_lat=b["dropoff"][1],
                dropoff_lng=b["dropoff"][2],
                distance_km=b["distance"],
                estimated_duration_min=b["duration"],
                scheduled_at=scheduled_at,
                currency=vehicle.currency,
                status=b["status"],
                **pricing.as_dict(),
            )
            if b["status"] in (BookingStatus.CONFIRMED, BookingStatus.COMPLETED):
                booking.confirmed_at = now
            if b["status"] == BookingStatus.COMPLETED:
                booking.trip_start_time = scheduled_at
                booking.trip_end_time = scheduled_at + timedelta(minutes=b["duration"])
                booking.actual_duration_min = b["duration"]
                booking.payment_status = PaymentStatus.PAID
                booking.paid_at = booking.trip_end_time
            session.add(booking)
        await session.flush()
        print(f"  Created {len(bookings_data)} bookings")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
