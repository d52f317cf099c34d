"""
Per-user views
==============

GET /api/v1/customers/{customer_id}/bookings -- booking history, newest first
GET /api/v1/providers/{provider_id}/bookings -- jobs claimed by a provider
GET /api/v1/providers/{provider_id}/earnings -- daily / weekly / monthly totals
GET /api/v1/users/{user_id}/rating           -- average score received
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.api.dependencies import get_db, get_earnings, get_ledger
from ondemand.api.middleware import DEFAULT_LIMIT, limiter
from ondemand.api.schemas import (
    BookingResponse,
    EarningsResponse,
    RatingSummaryResponse,
)
from ondemand.domain.enums import BookingStatus
from ondemand.infrastructure.repositories import BookingRepository
from ondemand.services.earnings import ProviderEarnings
from ondemand.services.ratings import RatingLedger

router = APIRouter(tags=["users"])


@router.get(
    "/customers/{customer_id}/bookings",
    response_model=list[BookingResponse],
    summary="Customer booking history",
)
@limiter.limit(DEFAULT_LIMIT)
async def list_customer_bookings(
    request: Request,
    customer_id: str,
    status: Optional[BookingStatus] = None,
    db: AsyncSession = Depends(get_db),
):
    return await BookingRepository(db).list_for_customer(customer_id, status)


@router.get(
    "/providers/{provider_id}/bookings",
    response_model=list[BookingResponse],
    summary="Bookings claimed by a provider",
)
@limiter.limit(DEFAULT_LIMIT)
async def list_provider_bookings(
    request: Request,
    provider_id: str,
    status: Optional[BookingStatus] = None,
    db: AsyncSession = Depends(get_db),
):
    return await BookingRepository(db).list_for_provider(provider_id, status)


@router.get(
    "/providers/{provider_id}/earnings",
    response_model=EarningsResponse,
    summary="Provider earnings from completed bookings",
)
@limiter.limit(DEFAULT_LIMIT)
async def provider_earnings(
    request: Request,
    provider_id: str,
    db: AsyncSession = Depends(get_db),
    earnings: ProviderEarnings = Depends(get_earnings),
):
    return await earnings.summarize(db, provider_id, datetime.now(timezone.utc))


@router.get(
    "/users/{user_id}/rating",
    response_model=RatingSummaryResponse,
    summary="Average rating received by a user",
)
@limiter.limit(DEFAULT_LIMIT)
async def rating_summary(
    request: Request,
    user_id: str,
    db: AsyncSession = Depends(get_db),
    ledger: RatingLedger = Depends(get_ledger),
):
    return await ledger.summary(db, user_id)
