"""Provider earnings: sums of ``final_price`` over completed bookings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.domain.enums import BookingStatus
from ondemand.domain.pricing import round2
from ondemand.infrastructure.repositories import BookingRepository


@dataclass(frozen=True)
class EarningsSummary:
    provider_id: str
    completed_count: int
    daily: float
    weekly: float
    monthly: float
    total: float


def _to_utc(dt: datetime) -> datetime:
    """Ensure a datetime is UTC-aware, handling both aware and naive inputs."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ProviderEarnings:
    async def summarize(
        self, session: AsyncSession, provider_id: str, now: datetime
    ) -> EarningsSummary:
        bookings = await BookingRepository(session).list_for_provider(
            provider_id, BookingStatus.COMPLETED
        )

        now = _to_utc(now)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        week_start = day_start - timedelta(days=day_start.weekday())
        month_start = day_start.replace(day=1)

        daily = weekly = monthly = total = 0.0
        for b in bookings:
            if b.final_price is None:
                continue
            amount = b.final_price
            total += amount
            when = _to_utc(b.completed_at or b.created_at)
            if when > now:
                continue
            if when >= day_start:
                daily += amount
            if when >= week_start:
                weekly += amount
            if when >= month_start:
                monthly += amount

        return EarningsSummary(
            provider_id=provider_id,
            completed_count=len(bookings),
            daily=round2(daily),
            weekly=round2(weekly),
            monthly=round2(monthly),
            total=round2(total),
        )
