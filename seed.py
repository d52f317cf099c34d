"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 4 service categories (ride, delivery, errands, moving)
  - 4 sample bookings in the pending pool around Manhattan, priced by the
    real lifecycle service (haversine routing, no notifications)
"""

import asyncio
from datetime import datetime

from sqlalchemy import text

from ondemand.config import settings
from ondemand.domain.entities import Location
from ondemand.domain.enums import ServiceKind
from ondemand.domain.pricing import PricingEngine
from ondemand.infrastructure.database import async_session_factory, engine
from ondemand.infrastructure.models import ServiceCategoryModel
from ondemand.services.lifecycle import BookingLifecycle
from ondemand.services.routing import RouteEstimator


CATEGORIES = [
    {
        "name": "Ride",
        "kind": ServiceKind.RIDE,
        "description": "Point-to-point passenger ride",
        "base_price": 5.0,
        "price_per_km": 1.5,
    },
    {
        "name": "Delivery",
        "kind": ServiceKind.DELIVERY,
        "description": "Parcel pickup and drop",
        "base_price": 4.0,
        "price_per_km": 1.2,
    },
    {
        "name": "Errands",
        "kind": ServiceKind.ERRANDS,
        "description": "Shopping, queueing and other local tasks",
        "base_price": 12.0,
        "price_per_km": 0.0,
    },
    {
        "name": "Moving",
        "kind": ServiceKind.MOVING,
        "description": "Van with helpers for furniture and boxes",
        "base_price": 40.0,
        "price_per_km": 3.0,
    },
]

# (category name, pickup, dropoff)
BOOKINGS = [
    (
        "Ride",
        Location(40.7580, -73.9855, "Times Square"),
        Location(40.6413, -73.7781, "JFK Airport"),
    ),
    (
        "Delivery",
        Location(40.7484, -73.9857, "Empire State Building"),
        Location(40.7061, -74.0087, "Wall Street"),
    ),
    ("Errands", Location(40.7794, -73.9632, "Upper East Side"), None),
    (
        "Moving",
        Location(40.6782, -73.9442, "Brooklyn"),
        Location(40.7282, -73.7949, "Queens"),
    ),
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM service_categories"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Service categories ────────────────────────────────────────
        by_name = {}
        for c in CATEGORIES:
            m = ServiceCategoryModel(**c)
            session.add(m)
            by_name[c["name"]] = m
        await session.commit()
        print(f"  Created {len(by_name)} service categories")

        # ── Pending bookings ──────────────────────────────────────────
        lifecycle = BookingLifecycle(
            PricingEngine.from_settings(settings),
            RouteEstimator(None),
            h3_resolution=settings.h3_resolution,
        )
        noon = datetime.now().replace(hour=12, minute=0, second=0, microsecond=0)
        for i, (category, pickup, dropoff) in enumerate(BOOKINGS, start=1):
            booking = await lifecycle.create(
                session,
                customer_id=f"seed-customer-{i}",
                service_category_id=by_name[category].id,
                pickup=pickup,
                dropoff=dropoff,
                local_time=noon,
            )
            print(f"  Booking {booking.id}: {category} @ {booking.estimated_price:.2f}")

        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
