"""FastAPI dependency injection helpers."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.config import settings
from ondemand.domain.pricing import PricingEngine
from ondemand.infrastructure.database import async_session_factory
from ondemand.infrastructure.notifications import (
    NotificationRelay,
    RedisNotificationRelay,
)
from ondemand.infrastructure.redis_client import get_redis
from ondemand.services.earnings import ProviderEarnings
from ondemand.services.lifecycle import BookingLifecycle
from ondemand.services.matching_pool import MatchingPool
from ondemand.services.ratings import RatingLedger
from ondemand.services.routing import RouteEstimator

_pricing = PricingEngine.from_settings(settings)
_routes = RouteEstimator.from_settings(settings)


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_relay() -> NotificationRelay:
    return RedisNotificationRelay(
        await get_redis(), prefix=settings.notification_channel_prefix
    )


def get_lifecycle(relay: NotificationRelay = Depends(get_relay)) -> BookingLifecycle:
    return BookingLifecycle(
        _pricing, _routes, relay, h3_resolution=settings.h3_resolution
    )


def get_pool(lifecycle: BookingLifecycle = Depends(get_lifecycle)) -> MatchingPool:
    return MatchingPool(
        lifecycle,
        default_limit=settings.available_default_limit,
        max_limit=settings.available_max_limit,
        h3_resolution=settings.h3_resolution,
    )


def get_ledger() -> RatingLedger:
    return RatingLedger()


def get_earnings() -> ProviderEarnings:
    return ProviderEarnings()
