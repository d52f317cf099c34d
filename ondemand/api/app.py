"""
FastAPI application factory.

* Registers routes for bookings, catalog, per-user views and admin.
* Maps domain errors to HTTP responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ondemand.api.errors import register_error_handlers
from ondemand.api.middleware import limiter
from ondemand.api.routes import admin, bookings, catalog, users
from ondemand.infrastructure.database import engine
from ondemand.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Dispose pooled DB and Redis connections on shutdown."""
    logger.info("On-demand booking API starting")
    yield
    await engine.dispose()
    await close_redis()
    logger.info("On-demand booking API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="On-Demand Services Booking API",
        description=(
            "Books rides, deliveries, errands and moving jobs, prices them "
            "with time- and location-based surge, and lets independent "
            "providers claim pending requests.  Concurrent claims are "
            "arbitrated by conditional updates: exactly one provider wins."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(catalog.router, prefix="/api/v1")
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(users.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
