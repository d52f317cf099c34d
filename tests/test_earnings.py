"""Tests for provider earnings aggregation."""

from datetime import datetime, timezone

import pytest
from sqlalchemy import update

from ondemand.infrastructure.models import BookingModel
from ondemand.services.earnings import ProviderEarnings, _to_utc

# Wednesday; the week started Monday 2026-03-02
NOW = datetime(2026, 3, 4, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def completed_at(lifecycle, session_factory, make_booking):
    """Complete a booking for P1 and pin its completion time."""

    async def _complete(when: datetime, final_price: float, provider_id="P1"):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, provider_id)
            await lifecycle.start(session, booking.id)
            await lifecycle.complete(session, booking.id, final_price=final_price)
            await session.execute(
                update(BookingModel)
                .where(BookingModel.id == booking.id)
                .values(completed_at=when)
            )
            await session.commit()
        return booking

    return _complete


class TestToUtc:
    def test_naive_is_treated_as_utc(self):
        naive = datetime(2026, 3, 4, 12, 0)
        assert _to_utc(naive) == datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        from datetime import timedelta

        plus_two = timezone(timedelta(hours=2))
        aware = datetime(2026, 3, 4, 12, 0, tzinfo=plus_two)
        assert _to_utc(aware).hour == 10


class TestProviderEarnings:
    @pytest.mark.asyncio
    async def test_buckets(self, completed_at, db_session):
        await completed_at(datetime(2026, 3, 4, 10, 0, tzinfo=timezone.utc), 10.0)
        await completed_at(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc), 20.0)
        await completed_at(datetime(2026, 3, 1, 22, 0, tzinfo=timezone.utc), 30.0)
        await completed_at(datetime(2026, 2, 20, 8, 0, tzinfo=timezone.utc), 40.0)

        summary = await ProviderEarnings().summarize(db_session, "P1", NOW)
        assert summary.completed_count == 4
        assert summary.daily == 10.0
        assert summary.weekly == 30.0
        assert summary.monthly == 60.0
        assert summary.total == 100.0

    @pytest.mark.asyncio
    async def test_future_completions_count_only_in_total(self, completed_at, db_session):
        await completed_at(datetime(2026, 3, 5, 9, 0, tzinfo=timezone.utc), 5.0)
        summary = await ProviderEarnings().summarize(db_session, "P1", NOW)
        assert summary.daily == summary.weekly == summary.monthly == 0.0
        assert summary.total == 5.0

    @pytest.mark.asyncio
    async def test_ignores_other_providers_and_open_bookings(
        self, completed_at, lifecycle, make_booking, db_session, session_factory
    ):
        await completed_at(datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc), 12.5)
        await completed_at(
            datetime(2026, 3, 4, 9, 0, tzinfo=timezone.utc), 99.0, provider_id="P2"
        )
        open_booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, open_booking.id, "P1")

        summary = await ProviderEarnings().summarize(db_session, "P1", NOW)
        assert summary.completed_count == 1
        assert summary.total == 12.5

    @pytest.mark.asyncio
    async def test_provider_without_bookings(self, db_session, categories):
        summary = await ProviderEarnings().summarize(db_session, "nobody", NOW)
        assert summary.completed_count == 0
        assert summary.total == 0.0
