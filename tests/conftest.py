"""
Shared test fixtures.

Uses a per-test SQLite database file (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  A file rather than ``:memory:`` gives every
session its own connection, which is what the concurrent-claim tests
need to exercise the conditional UPDATE for real.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ondemand.domain.entities import Location, RouteEstimate
from ondemand.domain.enums import ServiceKind
from ondemand.domain.pricing import DemandArea, PricingEngine
from ondemand.infrastructure.database import Base
from ondemand.infrastructure.models import ServiceCategoryModel
from ondemand.services.lifecycle import BookingLifecycle
from ondemand.services.matching_pool import MatchingPool
from ondemand.services.routing import RouteEstimator

NEW_YORK = DemandArea(40.7128, -74.0060, 5.0)
LONDON = Location(51.5074, -0.1278, "Trafalgar Square")
LONDON_EAST = Location(51.5155, -0.0922, "Bank")


# ── Test doubles ──────────────────────────────────────────────────────


class FixedRoute:
    """Routing provider that always answers with the same estimate."""

    def __init__(self, distance_km: float, duration_minutes: int):
        self.estimate = RouteEstimate(distance_km, duration_minutes)
        self.calls = 0

    async def get_distance_duration(self, origin, destination) -> RouteEstimate:
        self.calls += 1
        return self.estimate


class RecordingRelay:
    def __init__(self):
        self.available: list[str] = []
        self.status_changes: list[tuple[str, str]] = []

    async def notify_new_booking_available(self, booking_id: str) -> None:
        self.available.append(booking_id)

    async def notify_status_changed(self, booking_id: str, new_status) -> None:
        self.status_changes.append((booking_id, new_status.value))


class TickingClock:
    """UTC clock advancing one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}", echo=False
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def categories(session_factory) -> dict[str, str]:
    """Seed categories; returns name -> id."""
    rows = [
        ServiceCategoryModel(
            name="Ride", kind=ServiceKind.RIDE, base_price=5.0, price_per_km=1.0
        ),
        ServiceCategoryModel(
            name="Errands", kind=ServiceKind.ERRANDS, base_price=12.0, price_per_km=0.0
        ),
        ServiceCategoryModel(
            name="Delivery", kind=ServiceKind.DELIVERY, base_price=4.0, price_per_km=1.2
        ),
        ServiceCategoryModel(
            name="Retired",
            kind=ServiceKind.MOVING,
            base_price=40.0,
            price_per_km=3.0,
            is_active=False,
        ),
    ]
    async with session_factory() as session:
        session.add_all(rows)
        await session.commit()
    return {r.name: r.id for r in rows}


# ── Services ──────────────────────────────────────────────────────────


@pytest.fixture
def relay() -> RecordingRelay:
    return RecordingRelay()


@pytest.fixture
def route() -> FixedRoute:
    return FixedRoute(4.0, 12)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def lifecycle(route, relay, clock) -> BookingLifecycle:
    return BookingLifecycle(
        PricingEngine(areas=[NEW_YORK]),
        RouteEstimator(route),
        relay,
        clock=clock,
        local_clock=lambda: datetime(2026, 3, 2, 12, 0),
    )


@pytest.fixture
def pool(lifecycle) -> MatchingPool:
    return MatchingPool(lifecycle, default_limit=10, max_limit=50)


@pytest.fixture
def make_booking(lifecycle, session_factory, categories):
    """Create a pending Ride booking London -> London East."""

    async def _make(customer_id: str = "cust-1", **overrides):
        kwargs = dict(
            customer_id=customer_id,
            service_category_id=categories["Ride"],
            pickup=LONDON,
            dropoff=LONDON_EAST,
        )
        kwargs.update(overrides)
        async with session_factory() as session:
            return await lifecycle.create(session, **kwargs)

    return _make


# ── API ───────────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(session_factory, lifecycle, categories):
    """AsyncClient backed by the SQLite file and the test lifecycle."""
    from ondemand.api.app import create_app
    from ondemand.api.dependencies import get_db, get_lifecycle
    from ondemand.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    limiter.enabled = False
    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
