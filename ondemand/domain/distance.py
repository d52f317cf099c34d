"""
Distance calculation using the Haversine formula.

This is the local fallback of the route estimator: great-circle distance
instead of road distance, with a fixed 3-minutes-per-km duration
heuristic.  It is used whenever the routing provider is not configured or
fails.

Complexity: O(1) per call.
"""

import math

from .entities import RouteEstimate

EARTH_RADIUS_KM = 6_371.0
MINUTES_PER_KM = 3


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def straight_line_estimate(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> RouteEstimate:
    distance = haversine_km(lat1, lng1, lat2, lng2)
    return RouteEstimate(
        distance_km=distance,
        duration_minutes=math.ceil(distance * MINUTES_PER_KM),
    )
