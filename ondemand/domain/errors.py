"""
Error taxonomy for the booking core.

Every error carries a stable ``code`` which the API layer exposes next to
a user-facing ``detail``.  Transition errors keep the internal state names
on the exception for logging but never put them in ``user_message``.
"""

from __future__ import annotations

from typing import Iterable, Optional


class BookingError(Exception):
    code = "booking_error"
    user_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.user_message)


class NotFound(BookingError):
    code = "not_found"
    user_message = "Not found"

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")

    @property
    def user_detail(self) -> str:
        return f"{self.entity} not found"


class InvalidTransition(BookingError):
    """The trigger is not legal from the booking's current status."""

    code = "invalid_transition"
    user_message = "Action unavailable"

    def __init__(self, current, trigger, allowed: Iterable):
        self.current = current
        self.trigger = trigger
        self.allowed = frozenset(allowed)
        legal = ", ".join(sorted(t.value for t in self.allowed)) or "none"
        super().__init__(
            f"Cannot {trigger.value} a booking in status {current.value} "
            f"(legal triggers: {legal})"
        )


class StaleTransition(BookingError):
    """The conditional update matched no row: a concurrent transition won."""

    code = "stale_transition"
    user_message = "Booking no longer available"

    def __init__(self, booking_id: str, trigger):
        self.booking_id = booking_id
        self.trigger = trigger
        super().__init__(
            f"Booking {booking_id} changed before {trigger.value} could apply"
        )


class RoutingUnavailable(BookingError):
    """Routing provider failed.  Always absorbed by the route estimator."""

    code = "routing_unavailable"


class InvalidScore(BookingError):
    code = "invalid_score"
    user_message = "Rating must be between 1 and 5"


class BookingNotCompleted(BookingError):
    code = "booking_not_completed"
    user_message = "Only completed bookings can be rated"


class MissingDropoff(BookingError):
    code = "missing_dropoff"
    user_message = "This service requires a dropoff location"


class DuplicateRating(BookingError):
    code = "duplicate_rating"
    user_message = "This booking has already been rated"


class MissingProvider(BookingError):
    code = "missing_provider"
    user_message = "A provider is required to claim a booking"
