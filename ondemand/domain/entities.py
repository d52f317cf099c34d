"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Booking``: ``apply`` enforces the lifecycle graph
  (pending -> accepted -> in_progress -> completed, cancel before service)
  and returns the field changes the store must write conditionally.
- ``Booking.invariant_violations`` lists broken data-model invariants.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .enums import BOOKING_TRANSITIONS, BookingStatus, BookingTrigger, legal_triggers
from .errors import InvalidTransition, MissingProvider

_BOUND_STATUSES = frozenset(
    {BookingStatus.ACCEPTED, BookingStatus.IN_PROGRESS, BookingStatus.COMPLETED}
)


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None


@dataclass(frozen=True)
class RouteEstimate:
    distance_km: float
    duration_minutes: int


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Booking:
    id: Optional[str] = None
    customer_id: str = ""
    provider_id: Optional[str] = None
    service_category_id: str = ""
    pickup: Location = field(default_factory=lambda: Location(0, 0))
    dropoff: Optional[Location] = None
    status: BookingStatus = BookingStatus.PENDING
    estimated_price: Optional[float] = None
    final_price: Optional[float] = None
    distance_km: Optional[float] = None
    special_instructions: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def apply(
        self,
        trigger: BookingTrigger,
        at: datetime,
        *,
        provider_id: Optional[str] = None,
        final_price: Optional[float] = None,
    ) -> dict[str, Any]:
        """Fire *trigger* at time *at*.

        Mutates the entity and returns the changed columns.  Raises
        ``InvalidTransition`` if the trigger is illegal from the current
        status, and ``MissingProvider`` for a claim without a provider.
        """
        sources, target = BOOKING_TRANSITIONS[trigger]
        if self.status not in sources:
            raise InvalidTransition(self.status, trigger, legal_triggers(self.status))

        changes: dict[str, Any] = {"status": target, "updated_at": at}
        if trigger is BookingTrigger.CLAIM:
            if not provider_id:
                raise MissingProvider()
            changes["provider_id"] = provider_id
        elif trigger is BookingTrigger.START:
            changes["started_at"] = at
        elif trigger is BookingTrigger.COMPLETE:
            changes["completed_at"] = at
            changes["final_price"] = (
                final_price if final_price is not None else self.estimated_price
            )

        for name, value in changes.items():
            setattr(self, name, value)
        return changes

    def invariant_violations(self) -> list[str]:
        # cancelled bookings may or may not have a provider, depending on
        # whether they were cancelled before or after the claim
        problems = []
        if self.status == BookingStatus.PENDING and self.provider_id is not None:
            problems.append("pending booking has a provider")
        if self.status in _BOUND_STATUSES and self.provider_id is None:
            problems.append(f"{self.status.value} booking has no provider")
        if (self.final_price is not None) != (self.status == BookingStatus.COMPLETED):
            problems.append("final_price must be set iff status is completed")
        if self.dropoff is None and self.distance_km not in (None, 0.0):
            problems.append("distance without a dropoff")
        return problems
