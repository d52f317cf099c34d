"""Domain enumerations and state-transition rules."""

import enum


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BookingTrigger(str, enum.Enum):
    CLAIM = "claim"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"


# State machine: trigger -> (allowed source statuses, destination)
BOOKING_TRANSITIONS: dict[BookingTrigger, tuple[frozenset[BookingStatus], BookingStatus]] = {
    BookingTrigger.CLAIM: (frozenset({BookingStatus.PENDING}), BookingStatus.ACCEPTED),
    BookingTrigger.START: (frozenset({BookingStatus.ACCEPTED}), BookingStatus.IN_PROGRESS),
    BookingTrigger.COMPLETE: (
        frozenset({BookingStatus.IN_PROGRESS}),
        BookingStatus.COMPLETED,
    ),
    BookingTrigger.CANCEL: (
        frozenset({BookingStatus.PENDING, BookingStatus.ACCEPTED}),
        BookingStatus.CANCELLED,
    ),
}

TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})


def legal_triggers(status: BookingStatus) -> frozenset[BookingTrigger]:
    """Triggers that may fire from *status*."""
    return frozenset(
        trigger
        for trigger, (sources, _) in BOOKING_TRANSITIONS.items()
        if status in sources
    )


class ServiceKind(str, enum.Enum):
    RIDE = "ride"
    DELIVERY = "delivery"
    ERRANDS = "errands"
    MOVING = "moving"

    @property
    def requires_dropoff(self) -> bool:
        return self is not ServiceKind.ERRANDS
