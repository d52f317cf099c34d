"""
Booking endpoints
=================

POST /api/v1/bookings                      -- create a booking (201)
GET  /api/v1/bookings/available            -- pending pool, oldest first
GET  /api/v1/bookings/{booking_id}         -- booking details
POST /api/v1/bookings/{booking_id}/claim   -- provider claims a pending booking
POST /api/v1/bookings/{booking_id}/start   -- accepted -> in_progress
POST /api/v1/bookings/{booking_id}/complete -- in_progress -> completed
POST /api/v1/bookings/{booking_id}/cancel  -- pending / accepted -> cancelled
POST /api/v1/bookings/{booking_id}/ratings -- rate a completed booking (201)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.api.dependencies import get_db, get_ledger, get_lifecycle, get_pool
from ondemand.api.middleware import DEFAULT_LIMIT, limiter
from ondemand.api.schemas import (
    BookingCreateRequest,
    BookingResponse,
    ClaimRequest,
    CompleteRequest,
    ErrorResponse,
    RatingCreateRequest,
    RatingResponse,
)
from ondemand.config import settings
from ondemand.domain.entities import Location
from ondemand.services.lifecycle import BookingLifecycle
from ondemand.services.matching_pool import MatchingPool, PoolFilter
from ondemand.services.ratings import RatingLedger

router = APIRouter(prefix="/bookings", tags=["bookings"])

TRANSITION_ERRORS = {
    404: {"model": ErrorResponse, "description": "Booking not found"},
    409: {
        "model": ErrorResponse,
        "description": "Action unavailable, or booking no longer available",
    },
}


@router.post(
    "",
    status_code=201,
    response_model=BookingResponse,
    summary="Create a booking",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown service category"},
        422: {"model": ErrorResponse, "description": "Dropoff required"},
    },
)
@limiter.limit(DEFAULT_LIMIT)
async def create_booking(
    request: Request,
    body: BookingCreateRequest,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.create(
        db,
        customer_id=body.customer_id,
        service_category_id=body.service_category_id,
        pickup=body.pickup.to_domain(),
        dropoff=body.dropoff.to_domain() if body.dropoff else None,
        special_instructions=body.special_instructions,
        scheduled_time=body.scheduled_time,
        idempotency_key=body.idempotency_key,
        local_time=body.local_time,
    )


@router.get(
    "/available",
    response_model=list[BookingResponse],
    summary="List pending, unclaimed bookings (oldest first)",
    description=(
        "Poll this endpoint every ``X-Poll-Interval`` seconds.  A listed "
        "booking may already be claimed when you act on it; the claim "
        "endpoint is authoritative."
    ),
)
@limiter.limit(DEFAULT_LIMIT)
async def list_available(
    request: Request,
    response: Response,
    limit: Optional[int] = Query(None, ge=1),
    service_category_id: Optional[str] = None,
    near_lat: Optional[float] = Query(None, ge=-90, le=90),
    near_lng: Optional[float] = Query(None, ge=-180, le=180),
    rings: int = Query(1, ge=0, le=10),
    db: AsyncSession = Depends(get_db),
    pool: MatchingPool = Depends(get_pool),
):
    near = None
    if near_lat is not None and near_lng is not None:
        near = Location(near_lat, near_lng)
    response.headers["X-Poll-Interval"] = str(settings.poll_interval_seconds)
    return await pool.list_available(
        db,
        limit,
        PoolFilter(service_category_id=service_category_id, near=near, rings=rings),
    )


@router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    summary="Get booking status and price",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_LIMIT)
async def get_booking(
    request: Request,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.get(db, booking_id)


@router.post(
    "/{booking_id}/claim",
    response_model=BookingResponse,
    summary="Claim a pending booking",
    description="Exactly one concurrent claimant wins; the others get 409.",
    responses=TRANSITION_ERRORS,
)
@limiter.limit(DEFAULT_LIMIT)
async def claim_booking(
    request: Request,
    booking_id: str,
    body: ClaimRequest,
    db: AsyncSession = Depends(get_db),
    pool: MatchingPool = Depends(get_pool),
):
    return await pool.claim(db, booking_id, body.provider_id)


@router.post(
    "/{booking_id}/start",
    response_model=BookingResponse,
    summary="Start service on an accepted booking",
    responses=TRANSITION_ERRORS,
)
@limiter.limit(DEFAULT_LIMIT)
async def start_booking(
    request: Request,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.start(db, booking_id)


@router.post(
    "/{booking_id}/complete",
    response_model=BookingResponse,
    summary="Complete an in-progress booking",
    description="``final_price`` defaults to the estimated price.",
    responses=TRANSITION_ERRORS,
)
@limiter.limit(DEFAULT_LIMIT)
async def complete_booking(
    request: Request,
    booking_id: str,
    body: Optional[CompleteRequest] = None,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    final_price = body.final_price if body else None
    return await lifecycle.complete(db, booking_id, final_price)


@router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    summary="Cancel a booking before service starts",
    responses=TRANSITION_ERRORS,
)
@limiter.limit(DEFAULT_LIMIT)
async def cancel_booking(
    request: Request,
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.cancel(db, booking_id)


@router.post(
    "/{booking_id}/ratings",
    status_code=201,
    response_model=RatingResponse,
    summary="Rate a completed booking",
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse, "description": "Already rated"},
        422: {"model": ErrorResponse, "description": "Bad score or not completed"},
    },
)
@limiter.limit(DEFAULT_LIMIT)
async def submit_rating(
    request: Request,
    booking_id: str,
    body: RatingCreateRequest,
    db: AsyncSession = Depends(get_db),
    ledger: RatingLedger = Depends(get_ledger),
):
    return await ledger.submit(
        db, booking_id, body.rater_id, body.rated_user_id, body.score, body.review
    )
