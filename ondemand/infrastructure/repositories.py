"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ``BookingRepository.conditional_update`` is
the single write path for lifecycle columns: it is a compare-and-swap on
``status`` (and optionally ``provider_id IS NULL``) that reports how many
rows matched.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import BookingModel, RatingModel, ServiceCategoryModel
from ondemand.domain.entities import Booking, Location
from ondemand.domain.enums import BookingStatus


def to_entity(model: BookingModel) -> Booking:
    dropoff = None
    if model.dropoff_lat is not None:
        dropoff = Location(model.dropoff_lat, model.dropoff_lng, model.dropoff_address)
    return Booking(
        id=model.id,
        customer_id=model.customer_id,
        provider_id=model.provider_id,
        service_category_id=model.service_category_id,
        pickup=Location(model.pickup_lat, model.pickup_lng, model.pickup_address),
        dropoff=dropoff,
        status=BookingStatus(model.status),
        estimated_price=model.estimated_price,
        final_price=model.final_price,
        distance_km=model.distance_km,
        special_instructions=model.special_instructions,
        created_at=model.created_at,
        started_at=model.started_at,
        completed_at=model.completed_at,
        updated_at=model.updated_at,
    )


class BookingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, booking: BookingModel) -> BookingModel:
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def get_by_id(
        self, booking_id: str, *, refresh: bool = False
    ) -> Optional[BookingModel]:
        return await self.session.get(
            BookingModel, booking_id, populate_existing=refresh
        )

    async def get_by_idempotency_key(
        self, customer_id: str, key: str
    ) -> Optional[BookingModel]:
        result = await self.session.execute(
            select(BookingModel).where(
                BookingModel.customer_id == customer_id,
                BookingModel.idempotency_key == key,
            )
        )
        return result.scalar_one_or_none()

    async def conditional_update(
        self,
        booking_id: str,
        expected_status: BookingStatus,
        values: dict[str, Any],
        *,
        require_unassigned: bool = False,
    ) -> int:
        """UPDATE ... WHERE id = :id AND status = :expected.  Returns rowcount."""
        stmt = (
            update(BookingModel)
            .where(
                BookingModel.id == booking_id,
                BookingModel.status == expected_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if require_unassigned:
            stmt = stmt.where(BookingModel.provider_id.is_(None))
        result = await self.session.execute(stmt)
        return result.rowcount

    async def list_pending(
        self,
        limit: int,
        *,
        service_category_id: Optional[str] = None,
        cells: Optional[Iterable[str]] = None,
    ) -> list[BookingModel]:
        query = select(BookingModel).where(
            BookingModel.status == BookingStatus.PENDING,
            BookingModel.provider_id.is_(None),
        )
        if service_category_id:
            query = query.where(
                BookingModel.service_category_id == service_category_id
            )
        if cells is not None:
            query = query.where(BookingModel.pickup_h3_cell.in_(list(cells)))
        result = await self.session.execute(
            query.order_by(BookingModel.created_at, BookingModel.id).limit(limit)
        )
        return list(result.scalars().all())

    async def list_for_customer(
        self, customer_id: str, status: Optional[BookingStatus] = None
    ) -> list[BookingModel]:
        query = select(BookingModel).where(BookingModel.customer_id == customer_id)
        if status is not None:
            query = query.where(BookingModel.status == status)
        result = await self.session.execute(
            query.order_by(BookingModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_for_provider(
        self, provider_id: str, status: Optional[BookingStatus] = None
    ) -> list[BookingModel]:
        query = select(BookingModel).where(BookingModel.provider_id == provider_id)
        if status is not None:
            query = query.where(BookingModel.status == status)
        result = await self.session.execute(
            query.order_by(BookingModel.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_pending(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BookingModel)
            .where(BookingModel.status == BookingStatus.PENDING)
        )
        return result.scalar() or 0


class ServiceCategoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, category_id: str) -> Optional[ServiceCategoryModel]:
        return await self.session.get(ServiceCategoryModel, category_id)

    async def list_active(self) -> list[ServiceCategoryModel]:
        result = await self.session.execute(
            select(ServiceCategoryModel)
            .where(ServiceCategoryModel.is_active.is_(True))
            .order_by(ServiceCategoryModel.name)
        )
        return list(result.scalars().all())


class RatingRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, rating: RatingModel) -> RatingModel:
        self.session.add(rating)
        await self.session.flush()
        return rating

    async def summary_for(self, user_id: str) -> tuple[Optional[float], int]:
        """Return ``(average_score, count)`` of ratings received by *user_id*."""
        result = await self.session.execute(
            select(func.avg(RatingModel.score), func.count(RatingModel.id)).where(
                RatingModel.rated_user == user_id
            )
        )
        avg, count = result.one()
        return (float(avg) if avg is not None else None), count
