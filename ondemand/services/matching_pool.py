"""
Matching Pool
=============

Exposes pending, unassigned bookings to providers and arbitrates claims.

* ``list_available`` is a plain read, oldest first.  The result may be
  stale by the time the provider acts on it; nothing is reserved.
* ``claim`` goes through ``BookingLifecycle.claim``, whose conditional
  UPDATE (``status = 'pending' AND provider_id IS NULL``) lets exactly one
  of N concurrent claimants win.  The others get ``StaleTransition``.

Providers discover work by polling ``list_available`` (every
``poll_interval_seconds``) and by the push emitted on booking creation;
the poll is the correctness path, the push only cuts latency.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.domain.entities import Location
from ondemand.domain.matching import nearby_cells
from ondemand.infrastructure.models import BookingModel
from ondemand.infrastructure.repositories import BookingRepository
from ondemand.services.lifecycle import BookingLifecycle


@dataclass(frozen=True)
class PoolFilter:
    service_category_id: Optional[str] = None
    near: Optional[Location] = None
    rings: int = 1


class MatchingPool:
    def __init__(
        self,
        lifecycle: BookingLifecycle,
        *,
        default_limit: int = 10,
        max_limit: int = 50,
        h3_resolution: int = 7,
    ):
        self.lifecycle = lifecycle
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.h3_resolution = h3_resolution

    async def list_available(
        self,
        session: AsyncSession,
        limit: Optional[int] = None,
        pool_filter: Optional[PoolFilter] = None,
    ) -> list[BookingModel]:
        limit = self.default_limit if limit is None else limit
        limit = max(0, min(limit, self.max_limit))
        if limit == 0:
            return []

        pool_filter = pool_filter or PoolFilter()
        cells = None
        if pool_filter.near is not None:
            cells = nearby_cells(
                pool_filter.near.latitude,
                pool_filter.near.longitude,
                pool_filter.rings,
                self.h3_resolution,
            )
        return await BookingRepository(session).list_pending(
            limit,
            service_category_id=pool_filter.service_category_id,
            cells=cells,
        )

    async def claim(
        self, session: AsyncSession, booking_id: str, provider_id: str
    ) -> BookingModel:
        return await self.lifecycle.claim(session, booking_id, provider_id)

    async def pending_count(self, session: AsyncSession) -> int:
        return await BookingRepository(session).count_pending()
