"""
Catalog & quote endpoints
=========================

GET  /api/v1/service-categories -- active categories ordered by name
POST /api/v1/quotes             -- route + price estimate, nothing persisted
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.api.dependencies import get_db, get_lifecycle
from ondemand.api.middleware import DEFAULT_LIMIT, limiter
from ondemand.api.schemas import (
    ErrorResponse,
    QuoteRequest,
    QuoteResponse,
    ServiceCategoryResponse,
)
from ondemand.infrastructure.repositories import ServiceCategoryRepository
from ondemand.services.lifecycle import BookingLifecycle

router = APIRouter(tags=["catalog"])


@router.get(
    "/service-categories",
    response_model=list[ServiceCategoryResponse],
    summary="List active service categories",
)
@limiter.limit(DEFAULT_LIMIT)
async def list_service_categories(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await ServiceCategoryRepository(db).list_active()


@router.post(
    "/quotes",
    response_model=QuoteResponse,
    summary="Estimate distance, duration and price for a trip",
    responses={
        404: {"model": ErrorResponse, "description": "Unknown service category"},
        422: {"model": ErrorResponse, "description": "Dropoff required"},
    },
)
@limiter.limit(DEFAULT_LIMIT)
async def quote_price(
    request: Request,
    body: QuoteRequest,
    db: AsyncSession = Depends(get_db),
    lifecycle: BookingLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.quote(
        db,
        body.service_category_id,
        body.pickup.to_domain(),
        body.dropoff.to_domain() if body.dropoff else None,
        body.local_time,
    )
