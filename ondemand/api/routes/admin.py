"""
Admin / observability endpoints
===============================

GET /api/v1/admin/pool   -- size of the pending pool
GET /api/v1/admin/health -- simple health check
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.api.dependencies import get_db, get_pool
from ondemand.api.middleware import DEFAULT_LIMIT, limiter
from ondemand.api.schemas import HealthResponse, PoolStatsResponse
from ondemand.config import settings
from ondemand.services.matching_pool import MatchingPool

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/pool",
    response_model=PoolStatsResponse,
    summary="Pending pool statistics",
)
@limiter.limit(DEFAULT_LIMIT)
async def pool_stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
    pool: MatchingPool = Depends(get_pool),
):
    return PoolStatsResponse(
        pending=await pool.pending_count(db),
        poll_interval_seconds=settings.poll_interval_seconds,
    )


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
