"""
Booking Lifecycle Service
=========================

Owns every write to a booking's ``status``, ``provider_id`` and lifecycle
timestamps.

Transition protocol
-------------------
1. Load the booking and check the trigger against the transition table
   (``InvalidTransition`` if illegal from the observed status).
2. Apply the change as one conditional UPDATE guarded by the observed
   status (and ``provider_id IS NULL`` for claims).
3. Zero matched rows means a concurrent transition landed first:
   roll back and raise ``StaleTransition``.  Nothing is retried here.
4. Commit, then emit a fire-and-forget status notification.

No lock is held between steps 1 and 2; the UPDATE predicate is the only
arbiter.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.domain.entities import Location, RouteEstimate
from ondemand.domain.enums import BookingStatus, BookingTrigger, ServiceKind
from ondemand.domain.errors import MissingDropoff, NotFound, StaleTransition
from ondemand.domain.matching import pickup_cell
from ondemand.domain.pricing import PriceQuote, PricingEngine
from ondemand.infrastructure.models import BookingModel, ServiceCategoryModel
from ondemand.infrastructure.notifications import NotificationRelay, NullNotificationRelay
from ondemand.infrastructure.repositories import (
    BookingRepository,
    ServiceCategoryRepository,
    to_entity,
)
from ondemand.services.routing import RouteEstimator

logger = logging.getLogger(__name__)

NO_ROUTE = RouteEstimate(distance_km=0.0, duration_minutes=0)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookingLifecycle:
    def __init__(
        self,
        pricing: PricingEngine,
        routes: RouteEstimator,
        relay: Optional[NotificationRelay] = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        local_clock: Callable[[], datetime] = datetime.now,
        h3_resolution: int = 7,
    ):
        self.pricing = pricing
        self.routes = routes
        self.relay = relay or NullNotificationRelay()
        self.clock = clock
        self.local_clock = local_clock
        self.h3_resolution = h3_resolution

    # ── Queries ───────────────────────────────────────────────────────

    async def get(self, session: AsyncSession, booking_id: str) -> BookingModel:
        booking = await BookingRepository(session).get_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        return booking

    async def quote(
        self,
        session: AsyncSession,
        service_category_id: str,
        pickup: Location,
        dropoff: Optional[Location] = None,
        local_time: Optional[datetime] = None,
    ) -> PriceQuote:
        category = await self._active_category(session, service_category_id)
        return await self._price(category, pickup, dropoff, local_time)

    # ── Triggers ──────────────────────────────────────────────────────

    async def create(
        self,
        session: AsyncSession,
        *,
        customer_id: str,
        service_category_id: str,
        pickup: Location,
        dropoff: Optional[Location] = None,
        special_instructions: Optional[str] = None,
        scheduled_time: Optional[datetime] = None,
        idempotency_key: Optional[str] = None,
        local_time: Optional[datetime] = None,
    ) -> BookingModel:
        repo = BookingRepository(session)

        if idempotency_key:
            existing = await repo.get_by_idempotency_key(customer_id, idempotency_key)
            if existing is not None:
                return existing

        category = await self._active_category(session, service_category_id)
        quote = await self._price(category, pickup, dropoff, local_time)

        now = self.clock()
        booking = BookingModel(
            customer_id=customer_id,
            service_category_id=category.id,
            pickup_lat=pickup.latitude,
            pickup_lng=pickup.longitude,
            pickup_address=pickup.address or "",
            pickup_h3_cell=pickup_cell(
                pickup.latitude, pickup.longitude, self.h3_resolution
            ),
            dropoff_lat=dropoff.latitude if dropoff else None,
            dropoff_lng=dropoff.longitude if dropoff else None,
            dropoff_address=(dropoff.address or "") if dropoff else None,
            status=BookingStatus.PENDING,
            distance_km=quote.distance_km,
            duration_minutes=quote.duration_minutes,
            surge_multiplier=quote.surge_multiplier,
            estimated_price=quote.estimated_price,
            special_instructions=special_instructions,
            scheduled_time=scheduled_time,
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )
        try:
            await repo.create(booking)
            await session.commit()
        except IntegrityError:
            # A concurrent retry with the same key committed first.
            await session.rollback()
            if not idempotency_key:
                raise
            existing = await repo.get_by_idempotency_key(customer_id, idempotency_key)
            if existing is None:
                raise
            logger.info(
                "Booking create for %s resolved to %s by idempotency key",
                customer_id, existing.id,
            )
            return existing

        logger.info(
            "Booking %s created (category=%s, price=%.2f, surge=%.2f)",
            booking.id, category.id, quote.estimated_price, quote.surge_multiplier,
        )
        await self.relay.notify_new_booking_available(booking.id)
        return booking

    async def claim(
        self, session: AsyncSession, booking_id: str, provider_id: str
    ) -> BookingModel:
        return await self._transition(
            session, booking_id, BookingTrigger.CLAIM, provider_id=provider_id
        )

    async def start(self, session: AsyncSession, booking_id: str) -> BookingModel:
        return await self._transition(session, booking_id, BookingTrigger.START)

    async def complete(
        self,
        session: AsyncSession,
        booking_id: str,
        final_price: Optional[float] = None,
    ) -> BookingModel:
        return await self._transition(
            session, booking_id, BookingTrigger.COMPLETE, final_price=final_price
        )

    async def cancel(self, session: AsyncSession, booking_id: str) -> BookingModel:
        return await self._transition(session, booking_id, BookingTrigger.CANCEL)

    # ── Internals ─────────────────────────────────────────────────────

    async def _active_category(
        self, session: AsyncSession, category_id: str
    ) -> ServiceCategoryModel:
        category = await ServiceCategoryRepository(session).get_by_id(category_id)
        if category is None or not category.is_active:
            raise NotFound("Service category", category_id)
        return category

    async def _price(
        self,
        category: ServiceCategoryModel,
        pickup: Location,
        dropoff: Optional[Location],
        local_time: Optional[datetime],
    ) -> PriceQuote:
        if dropoff is None:
            if ServiceKind(category.kind).requires_dropoff:
                raise MissingDropoff()
            route = NO_ROUTE
        else:
            route = await self.routes.estimate(pickup, dropoff)
        return self.pricing.quote(
            category.base_price or 0.0,
            category.price_per_km or 0.0,
            route,
            pickup,
            local_time or self.local_clock(),
        )

    async def _transition(
        self,
        session: AsyncSession,
        booking_id: str,
        trigger: BookingTrigger,
        *,
        provider_id: Optional[str] = None,
        final_price: Optional[float] = None,
    ) -> BookingModel:
        repo = BookingRepository(session)
        model = await repo.get_by_id(booking_id, refresh=True)
        if model is None:
            raise NotFound("Booking", booking_id)

        booking = to_entity(model)
        observed = booking.status

        # A claim that finds the booking already taken (or cancelled under
        # it) lost a race against the pending pool, it is not a caller bug.
        if (
            trigger is BookingTrigger.CLAIM
            and observed is not BookingStatus.PENDING
            and booking.provider_id != provider_id
        ):
            await session.rollback()
            logger.info("Claim of %s by %s arrived after %s", booking_id, provider_id, observed.value)
            raise StaleTransition(booking_id, trigger)

        changes = booking.apply(
            trigger, self.clock(), provider_id=provider_id, final_price=final_price
        )
        matched = await repo.conditional_update(
            booking_id,
            observed,
            changes,
            require_unassigned=trigger is BookingTrigger.CLAIM,
        )
        if not matched:
            await session.rollback()
            logger.info("Stale %s on booking %s", trigger.value, booking_id)
            raise StaleTransition(booking_id, trigger)

        await session.commit()
        model = await repo.get_by_id(booking_id, refresh=True)
        logger.info(
            "Booking %s: %s -> %s", booking_id, observed.value, booking.status.value
        )
        await self.relay.notify_status_changed(booking_id, booking.status)
        return model
