"""Service-level tests for the booking lifecycle against SQLite."""

from datetime import datetime

import pytest

from ondemand.domain.enums import BookingStatus
from ondemand.domain.errors import (
    InvalidTransition,
    MissingDropoff,
    MissingProvider,
    NotFound,
    StaleTransition,
)
from ondemand.infrastructure.repositories import BookingRepository, to_entity

from conftest import LONDON, LONDON_EAST


async def _check_invariants(session_factory, booking_id):
    async with session_factory() as session:
        model = await BookingRepository(session).get_by_id(booking_id)
        assert to_entity(model).invariant_violations() == []
        return model


class TestCreate:
    @pytest.mark.asyncio
    async def test_end_to_end_lifecycle(
        self, lifecycle, session_factory, categories, relay
    ):
        """base=5, per-km=1, distance=4, no surge -> 9.00 estimated and final."""
        async with session_factory() as session:
            booking = await lifecycle.create(
                session,
                customer_id="cust-1",
                service_category_id=categories["Ride"],
                pickup=LONDON,
                dropoff=LONDON_EAST,
            )
        assert booking.status == BookingStatus.PENDING
        assert booking.estimated_price == 9.00
        assert booking.provider_id is None
        await _check_invariants(session_factory, booking.id)

        async with session_factory() as session:
            booking = await lifecycle.claim(session, booking.id, "P1")
        assert booking.status == BookingStatus.ACCEPTED
        assert booking.provider_id == "P1"
        await _check_invariants(session_factory, booking.id)

        async with session_factory() as session:
            booking = await lifecycle.start(session, booking.id)
        assert booking.status == BookingStatus.IN_PROGRESS
        assert booking.started_at is not None
        await _check_invariants(session_factory, booking.id)

        async with session_factory() as session:
            booking = await lifecycle.complete(session, booking.id)
        assert booking.status == BookingStatus.COMPLETED
        assert booking.final_price == 9.00
        assert booking.completed_at is not None
        await _check_invariants(session_factory, booking.id)

        assert relay.available == [booking.id]
        assert [s for _, s in relay.status_changes] == [
            "accepted",
            "in_progress",
            "completed",
        ]

    @pytest.mark.asyncio
    async def test_create_records_route_and_timestamps(self, make_booking, clock):
        booking = await make_booking()
        assert booking.distance_km == 4.0
        assert booking.duration_minutes == 12
        assert booking.surge_multiplier == 1.0
        assert booking.created_at == booking.updated_at
        assert booking.pickup_h3_cell
        assert booking.started_at is None and booking.completed_at is None

    @pytest.mark.asyncio
    async def test_peak_hour_surge_applied(self, make_booking):
        booking = await make_booking(local_time=datetime(2026, 3, 2, 8, 15))
        assert booking.surge_multiplier == 1.5
        assert booking.estimated_price == 13.50

    @pytest.mark.asyncio
    async def test_errand_without_dropoff_prices_base_only(
        self, make_booking, categories, route
    ):
        booking = await make_booking(
            service_category_id=categories["Errands"], dropoff=None
        )
        assert booking.dropoff_lat is None
        assert booking.dropoff_lng is None
        assert booking.dropoff_address is None
        assert booking.distance_km == 0.0
        assert booking.estimated_price == 12.00
        assert route.calls == 0

    @pytest.mark.asyncio
    async def test_ride_without_dropoff_is_rejected(self, make_booking):
        with pytest.raises(MissingDropoff):
            await make_booking(dropoff=None)

    @pytest.mark.asyncio
    async def test_unknown_category(self, make_booking):
        with pytest.raises(NotFound):
            await make_booking(service_category_id="nope")

    @pytest.mark.asyncio
    async def test_inactive_category(self, make_booking, categories):
        with pytest.raises(NotFound):
            await make_booking(service_category_id=categories["Retired"])

    @pytest.mark.asyncio
    async def test_idempotency_key_returns_existing(self, make_booking, relay):
        first = await make_booking(idempotency_key="retry-1")
        second = await make_booking(idempotency_key="retry-1")
        assert first.id == second.id
        assert relay.available == [first.id]

    @pytest.mark.asyncio
    async def test_idempotency_key_is_scoped_to_customer(self, make_booking):
        mine = await make_booking("cust-1", idempotency_key="retry-1")
        theirs = await make_booking("cust-2", idempotency_key="retry-1")
        assert mine.id != theirs.id
        assert theirs.customer_id == "cust-2"

    @pytest.mark.asyncio
    async def test_concurrent_retry_resolves_to_committed_booking(
        self, make_booking, relay, monkeypatch
    ):
        """Second retry passes the key check before the first commits."""
        first = await make_booking(idempotency_key="retry-1")
        original = BookingRepository.get_by_idempotency_key
        calls = []

        async def lookup_misses_once(self, customer_id, key):
            calls.append(key)
            if len(calls) == 1:
                return None
            return await original(self, customer_id, key)

        monkeypatch.setattr(
            BookingRepository, "get_by_idempotency_key", lookup_misses_once
        )
        second = await make_booking(idempotency_key="retry-1")

        assert second.id == first.id
        assert len(calls) == 2
        assert relay.available == [first.id]

    @pytest.mark.asyncio
    async def test_quote_matches_created_price(
        self, lifecycle, session_factory, categories, make_booking
    ):
        async with session_factory() as session:
            quote = await lifecycle.quote(
                session, categories["Delivery"], LONDON, LONDON_EAST
            )
        booking = await make_booking(service_category_id=categories["Delivery"])
        assert quote.estimated_price == booking.estimated_price == 8.80


class TestTransitions:
    @pytest.mark.asyncio
    async def test_complete_with_override(self, lifecycle, session_factory, make_booking):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, "P1")
            await lifecycle.start(session, booking.id)
            done = await lifecycle.complete(session, booking.id, final_price=11.25)
        assert done.final_price == 11.25
        assert done.estimated_price == 9.00

    @pytest.mark.asyncio
    async def test_complete_then_cancel_fails(self, lifecycle, session_factory, make_booking):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, "P1")
            await lifecycle.start(session, booking.id)
            await lifecycle.complete(session, booking.id)
            with pytest.raises(InvalidTransition) as excinfo:
                await lifecycle.cancel(session, booking.id)
        assert excinfo.value.current == BookingStatus.COMPLETED
        assert excinfo.value.allowed == frozenset()

    @pytest.mark.asyncio
    async def test_cancel_in_progress_fails(self, lifecycle, session_factory, make_booking):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, "P1")
            await lifecycle.start(session, booking.id)
            with pytest.raises(InvalidTransition):
                await lifecycle.cancel(session, booking.id)

    @pytest.mark.asyncio
    async def test_complete_pending_fails(self, lifecycle, session_factory, make_booking):
        booking = await make_booking()
        async with session_factory() as session:
            with pytest.raises(InvalidTransition):
                await lifecycle.complete(session, booking.id)

    @pytest.mark.asyncio
    async def test_cancel_pending_keeps_provider_null(
        self, lifecycle, session_factory, make_booking
    ):
        booking = await make_booking()
        async with session_factory() as session:
            cancelled = await lifecycle.cancel(session, booking.id)
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.provider_id is None
        assert cancelled.final_price is None

    @pytest.mark.asyncio
    async def test_cancel_accepted_keeps_provider(
        self, lifecycle, session_factory, make_booking
    ):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, "P1")
            cancelled = await lifecycle.cancel(session, booking.id)
        assert cancelled.provider_id == "P1"

    @pytest.mark.asyncio
    async def test_updated_at_bumped_on_every_transition(
        self, lifecycle, session_factory, make_booking
    ):
        booking = await make_booking()
        async with session_factory() as session:
            accepted = await lifecycle.claim(session, booking.id, "P1")
            first = accepted.updated_at
            assert accepted.started_at is None
            started = await lifecycle.start(session, booking.id)
        assert started.updated_at > first

    @pytest.mark.asyncio
    async def test_unknown_booking(self, lifecycle, session_factory, categories):
        async with session_factory() as session:
            with pytest.raises(NotFound):
                await lifecycle.start(session, "missing")

    @pytest.mark.asyncio
    async def test_claim_without_provider_leaves_booking_pending(
        self, lifecycle, session_factory, make_booking
    ):
        booking = await make_booking()
        async with session_factory() as session:
            with pytest.raises(MissingProvider):
                await lifecycle.claim(session, booking.id, "")
            current = await lifecycle.get(session, booking.id)
        assert current.status == BookingStatus.PENDING
        assert current.provider_id is None

    @pytest.mark.asyncio
    async def test_reclaim_by_holder_is_invalid(
        self, lifecycle, session_factory, make_booking
    ):
        booking = await make_booking()
        async with session_factory() as session:
            await lifecycle.claim(session, booking.id, "P1")
            with pytest.raises(InvalidTransition):
                await lifecycle.claim(session, booking.id, "P1")

    @pytest.mark.asyncio
    async def test_stale_when_status_moved_under_the_caller(
        self, lifecycle, session_factory, make_booking, monkeypatch
    ):
        """Simulate a concurrent cancel landing between read and update."""
        booking = await make_booking()
        original = BookingRepository.conditional_update

        async def racing_update(self, booking_id, expected, values, **kw):
            async with session_factory() as other:
                await original(
                    BookingRepository(other),
                    booking_id,
                    BookingStatus.PENDING,
                    {"status": BookingStatus.CANCELLED},
                )
                await other.commit()
            return await original(self, booking_id, expected, values, **kw)

        monkeypatch.setattr(BookingRepository, "conditional_update", racing_update)
        async with session_factory() as session:
            with pytest.raises(StaleTransition):
                await lifecycle.claim(session, booking.id, "P1")

        monkeypatch.undo()
        async with session_factory() as session:
            current = await lifecycle.get(session, booking.id)
        assert current.status == BookingStatus.CANCELLED
        assert current.provider_id is None
