"""
Notification relay  (Redis pub/sub).

Outbound event sink for the booking core:

* ``<prefix>.available`` -- a new booking entered the pending pool
* ``<prefix>.status``    -- a booking changed status

Delivery is fire-and-forget and at-most-once: a publish failure is logged
and dropped.  Providers that miss a message still find the booking on
their next poll of the pending pool, which is the authoritative path.
"""

from __future__ import annotations

import json
import logging
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ondemand.domain.enums import BookingStatus

logger = logging.getLogger(__name__)


class NotificationRelay(Protocol):
    async def notify_new_booking_available(self, booking_id: str) -> None: ...

    async def notify_status_changed(
        self, booking_id: str, new_status: BookingStatus
    ) -> None: ...


class NullNotificationRelay:
    """Relay that drops every event.  Used when no broker is configured."""

    async def notify_new_booking_available(self, booking_id: str) -> None:
        return None

    async def notify_status_changed(
        self, booking_id: str, new_status: BookingStatus
    ) -> None:
        return None


class RedisNotificationRelay:
    def __init__(self, client: aioredis.Redis, prefix: str = "bookings"):
        self.redis = client
        self.prefix = prefix

    async def notify_new_booking_available(self, booking_id: str) -> None:
        await self._publish(
            f"{self.prefix}.available",
            {"event": "booking.available", "booking_id": booking_id},
        )

    async def notify_status_changed(
        self, booking_id: str, new_status: BookingStatus
    ) -> None:
        await self._publish(
            f"{self.prefix}.status",
            {
                "event": "booking.status_changed",
                "booking_id": booking_id,
                "status": BookingStatus(new_status).value,
            },
        )

    async def _publish(self, channel: str, payload: dict) -> None:
        try:
            await self.redis.publish(channel, json.dumps(payload))
        except (RedisError, OSError) as exc:
            logger.warning("Dropped notification on %s: %s", channel, exc)
