"""
Routing-provider client  (Google Distance Matrix API).

Returns driving distance / duration between two points.  Every failure
mode -- timeout, transport error, non-2xx response, non-OK payload,
malformed body -- is raised as ``RoutingUnavailable`` so the caller can
fall back to the local haversine estimate.
"""

from __future__ import annotations

import math

import httpx

from ondemand.domain.entities import Location, RouteEstimate
from ondemand.domain.errors import RoutingUnavailable

DEFAULT_TIMEOUT = 3.0


class GoogleDistanceMatrixClient:
    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api/distancematrix/json",
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def get_distance_duration(
        self, origin: Location, destination: Location
    ) -> RouteEstimate:
        params = {
            "origins": f"{origin.latitude},{origin.longitude}",
            "destinations": f"{destination.latitude},{destination.longitude}",
            "mode": "driving",
            "key": self.api_key,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.get(self.base_url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as exc:
            raise RoutingUnavailable(f"timeout calling routing provider: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise RoutingUnavailable(
                f"routing provider returned {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise RoutingUnavailable(f"routing provider failed: {exc}") from exc

        return _parse_element(data)


def _number(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RoutingUnavailable(f"non-numeric route value {value!r}")
    if not math.isfinite(value) or value < 0:
        raise RoutingUnavailable(f"invalid route value {value!r}")
    return value


def _parse_element(data) -> RouteEstimate:
    if not isinstance(data, dict):
        raise RoutingUnavailable("routing response is not a JSON object")
    if data.get("status") != "OK":
        raise RoutingUnavailable(f"routing status {data.get('status')!r}")
    try:
        element = data["rows"][0]["elements"][0]
        element_status = element.get("status")
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise RoutingUnavailable("malformed routing response") from exc
    if element_status != "OK":
        raise RoutingUnavailable(f"route element status {element_status!r}")
    try:
        meters = _number(element["distance"]["value"])
        seconds = _number(element["duration"]["value"])
    except (KeyError, TypeError) as exc:
        raise RoutingUnavailable("route element missing distance/duration") from exc
    return RouteEstimate(
        distance_km=meters / 1000,
        duration_minutes=math.ceil(seconds / 60),
    )
