"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ondemand.domain.entities import Location
from ondemand.domain.enums import BookingStatus, ServiceKind


# ── Requests ──────────────────────────────────────────────────────────


class LocationIn(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: str = Field(..., min_length=1, max_length=255)

    def to_domain(self) -> Location:
        return Location(self.lat, self.lng, self.address)


class QuoteRequest(BaseModel):
    service_category_id: str
    pickup: LocationIn
    dropoff: Optional[LocationIn] = None
    local_time: Optional[datetime] = Field(
        None,
        description="Caller's local time for peak-hour surge; server clock if omitted.",
    )


class BookingCreateRequest(QuoteRequest):
    customer_id: str = Field(..., min_length=1, max_length=64)
    special_instructions: Optional[str] = Field(None, max_length=1000)
    scheduled_time: Optional[datetime] = None
    idempotency_key: Optional[str] = Field(
        None,
        max_length=64,
        description="Client-generated UUID to prevent double-booking on retries.",
    )


class ClaimRequest(BaseModel):
    provider_id: str = Field(..., min_length=1, max_length=64)


class CompleteRequest(BaseModel):
    final_price: Optional[float] = Field(None, ge=0)


class RatingCreateRequest(BaseModel):
    rater_id: str = Field(..., min_length=1, max_length=64)
    rated_user_id: str = Field(..., min_length=1, max_length=64)
    score: int
    review: Optional[str] = Field(None, max_length=2000)


# ── Responses ─────────────────────────────────────────────────────────


class ServiceCategoryResponse(BaseModel):
    id: str
    name: str
    kind: ServiceKind
    description: Optional[str] = None
    base_price: float
    price_per_km: float

    model_config = {"from_attributes": True}


class QuoteResponse(BaseModel):
    distance_km: float
    duration_minutes: int
    surge_multiplier: float
    estimated_price: float

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: str
    customer_id: str
    provider_id: Optional[str] = None
    service_category_id: str
    pickup_lat: float
    pickup_lng: float
    pickup_address: str
    dropoff_lat: Optional[float] = None
    dropoff_lng: Optional[float] = None
    dropoff_address: Optional[str] = None
    status: BookingStatus
    distance_km: Optional[float] = None
    duration_minutes: Optional[int] = None
    surge_multiplier: float
    estimated_price: Optional[float] = None
    final_price: Optional[float] = None
    special_instructions: Optional[str] = None
    scheduled_time: Optional[datetime] = None
    created_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class RatingResponse(BaseModel):
    id: str
    booking_id: str
    rated_by: str
    rated_user: str
    score: int
    review: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RatingSummaryResponse(BaseModel):
    user_id: str
    average: Optional[float] = None
    count: int

    model_config = {"from_attributes": True}


class EarningsResponse(BaseModel):
    provider_id: str
    completed_count: int
    daily: float
    weekly: float
    monthly: float
    total: float

    model_config = {"from_attributes": True}


class PoolStatsResponse(BaseModel):
    pending: int
    poll_interval_seconds: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    code: str
