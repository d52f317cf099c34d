"""
Route estimator: routing provider first, haversine fallback.

Price estimation must never fail because the mapping provider is down,
so ``RoutingUnavailable`` stops here.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ondemand.domain.distance import straight_line_estimate
from ondemand.domain.entities import Location, RouteEstimate
from ondemand.domain.errors import RoutingUnavailable
from ondemand.infrastructure.routing_client import GoogleDistanceMatrixClient

logger = logging.getLogger(__name__)


class RoutingProvider(Protocol):
    async def get_distance_duration(
        self, origin: Location, destination: Location
    ) -> RouteEstimate: ...


class RouteEstimator:
    def __init__(self, provider: Optional[RoutingProvider] = None):
        self.provider = provider

    @classmethod
    def from_settings(cls, settings) -> "RouteEstimator":
        if not settings.google_maps_api_key:
            logger.info("No routing credential configured; using haversine estimates")
            return cls(None)
        return cls(
            GoogleDistanceMatrixClient(
                settings.google_maps_api_key,
                base_url=settings.routing_base_url,
                timeout=settings.routing_timeout_seconds,
            )
        )

    async def estimate(self, origin: Location, destination: Location) -> RouteEstimate:
        if self.provider is not None:
            try:
                return await self.provider.get_distance_duration(origin, destination)
            except RoutingUnavailable as exc:
                logger.warning("Routing provider unavailable, falling back: %s", exc)
        return straight_line_estimate(
            origin.latitude, origin.longitude,
            destination.latitude, destination.longitude,
        )
