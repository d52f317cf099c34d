"""
Dynamic Pricing Engine
======================

Formula
-------
Price = round2((Base_Price + Distance x Price_Per_KM) x Surge_Multiplier)

* **Surge_Multiplier** = 1.0
  + 0.5 if the local hour is in a peak window ([07,09) or [17,19))
  + 0.3 if the pickup is within the radius of a high-demand area center
* Surge terms add up; the sum is applied once to the base amount.
* Rounding is half-away-from-zero to 2 decimals and happens exactly once,
  after the surge multiplication.

The clock's own hour field is used as-is: callers pass a time in the
locale whose peak windows they mean.

Complexity: O(A) per surge computation where A = # high-demand areas.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence

from .distance import haversine_km
from .entities import Location, RouteEstimate

CENTS = Decimal("0.01")

DEFAULT_PEAK_WINDOWS: tuple[tuple[int, int], ...] = ((7, 9), (17, 19))


@dataclass(frozen=True)
class DemandArea:
    lat: float
    lng: float
    radius_km: float


@dataclass(frozen=True)
class PriceQuote:
    distance_km: float
    duration_minutes: int
    surge_multiplier: float
    estimated_price: float


def round2(value: float) -> float:
    """Round half away from zero to 2 decimal places."""
    return float(Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP))


def estimate_price(
    base_price: float,
    price_per_km: float,
    distance_km: float,
    surge_multiplier: float = 1.0,
) -> float:
    return round2((base_price + price_per_km * distance_km) * surge_multiplier)


def in_peak_window(now: datetime, windows: Iterable[tuple[int, int]]) -> bool:
    return any(start <= now.hour < end for start, end in windows)


def in_demand_area(pickup: Location, areas: Iterable[DemandArea]) -> bool:
    return any(
        haversine_km(pickup.latitude, pickup.longitude, a.lat, a.lng) <= a.radius_km
        for a in areas
    )


def surge_multiplier(
    pickup: Optional[Location],
    now: datetime,
    *,
    areas: Sequence[DemandArea] = (),
    peak_windows: Iterable[tuple[int, int]] = DEFAULT_PEAK_WINDOWS,
    peak_surge: float = 0.5,
    area_surge: float = 0.3,
) -> float:
    multiplier = 1.0
    if in_peak_window(now, peak_windows):
        multiplier += peak_surge
    # no pickup => geographic surge is skipped, time surge still counts
    if pickup is not None and in_demand_area(pickup, areas):
        multiplier += area_surge
    return round2(multiplier)


# ── Engine facade ─────────────────────────────────────────────────────


class PricingEngine:
    """High-level API used by the booking lifecycle and the quote endpoint."""

    def __init__(
        self,
        areas: Sequence[DemandArea] = (),
        peak_windows: Iterable[tuple[int, int]] = DEFAULT_PEAK_WINDOWS,
        peak_surge: float = 0.5,
        area_surge: float = 0.3,
    ):
        self.areas = tuple(areas)
        self.peak_windows = tuple(peak_windows)
        self.peak_surge = peak_surge
        self.area_surge = area_surge

    @classmethod
    def from_settings(cls, settings) -> "PricingEngine":
        return cls(
            areas=[
                DemandArea(a.lat, a.lng, a.radius_km)
                for a in settings.high_demand_areas
            ],
            peak_windows=settings.peak_windows,
            peak_surge=settings.peak_surge,
            area_surge=settings.area_surge,
        )

    def surge(self, pickup: Optional[Location], now: datetime) -> float:
        return surge_multiplier(
            pickup,
            now,
            areas=self.areas,
            peak_windows=self.peak_windows,
            peak_surge=self.peak_surge,
            area_surge=self.area_surge,
        )

    def quote(
        self,
        base_price: float,
        price_per_km: float,
        route: RouteEstimate,
        pickup: Optional[Location],
        now: datetime,
    ) -> PriceQuote:
        surge = self.surge(pickup, now)
        return PriceQuote(
            distance_km=route.distance_km,
            duration_minutes=route.duration_minutes,
            surge_multiplier=surge,
            estimated_price=estimate_price(
                base_price, price_per_km, route.distance_km, surge
            ),
        )
