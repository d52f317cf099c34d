"""
Async SQLAlchemy engine and session factory.

Production runs on ``asyncpg``.  Every booking transition is a single
conditional UPDATE, so a connection is held for one statement plus commit
and the pool can stay small.  SQLite URLs (local runs, tests) get no pool
sizing since their dialect uses a non-queue pool.
"""

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from ondemand.config import settings


def build_engine(url: str) -> AsyncEngine:
    options = {"echo": settings.database_echo}
    if make_url(url).get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_pre_ping=True,
        )
    return create_async_engine(url, **options)


engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base for bookings, ratings and service categories."""
