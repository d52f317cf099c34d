"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``service_categories`` -- priced service offerings (ride, delivery, ...)
* ``bookings``           -- customer requests and their lifecycle
* ``ratings``            -- post-completion feedback, one per (booking, rater)

Indexes
-------
* **B-Tree** on ``(status, created_at)`` for the oldest-first pending pool,
  ``pickup_h3_cell`` for proximity filtering, ``customer_id`` /
  ``provider_id`` for history screens.
* **Unique** ``(customer_id, idempotency_key)`` so a retried create resolves
  to the booking the same customer already made.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .database import Base
from ondemand.domain.enums import BookingStatus, ServiceKind


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _values(enum_cls):
    return [member.value for member in enum_cls]


class ServiceCategoryModel(Base):
    __tablename__ = "service_categories"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(120), nullable=False)
    kind = Column(
        Enum(ServiceKind, name="service_kind", values_callable=_values),
        nullable=False,
    )
    description = Column(Text, nullable=True)
    base_price = Column(Float, nullable=False, default=0.0)
    price_per_km = Column(Float, nullable=False, default=0.0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(64), nullable=False)
    provider_id = Column(String(64), nullable=True)
    service_category_id = Column(
        String(36), ForeignKey("service_categories.id"), nullable=False
    )

    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    pickup_address = Column(String(255), nullable=False)
    pickup_h3_cell = Column(String(20), nullable=True)
    dropoff_lat = Column(Float, nullable=True)
    dropoff_lng = Column(Float, nullable=True)
    dropoff_address = Column(String(255), nullable=True)

    status = Column(
        Enum(BookingStatus, name="booking_status", values_callable=_values),
        default=BookingStatus.PENDING,
        nullable=False,
    )
    distance_km = Column(Float, nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    surge_multiplier = Column(Float, nullable=False, default=1.0)
    estimated_price = Column(Float, nullable=True)
    final_price = Column(Float, nullable=True)
    special_instructions = Column(Text, nullable=True)
    scheduled_time = Column(DateTime(timezone=True), nullable=True)
    idempotency_key = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "(dropoff_lat IS NULL AND dropoff_lng IS NULL AND dropoff_address IS NULL)"
            " OR (dropoff_lat IS NOT NULL AND dropoff_lng IS NOT NULL"
            " AND dropoff_address IS NOT NULL)",
            name="ck_bookings_dropoff_all_or_nothing",
        ),
        UniqueConstraint(
            "customer_id", "idempotency_key", name="uq_bookings_customer_idempotency"
        ),
        Index("idx_bookings_status_created", "status", "created_at"),
        Index("idx_bookings_pickup_cell", "pickup_h3_cell"),
        Index("idx_bookings_customer", "customer_id"),
        Index("idx_bookings_provider", "provider_id"),
    )


class RatingModel(Base):
    __tablename__ = "ratings"

    id = Column(String(36), primary_key=True, default=_uuid)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False)
    rated_by = Column(String(64), nullable=False)
    rated_user = Column(String(64), nullable=False)
    score = Column(Integer, nullable=False)
    review = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        UniqueConstraint("booking_id", "rated_by", name="uq_ratings_booking_rater"),
        CheckConstraint("score BETWEEN 1 AND 5", name="ck_ratings_score_range"),
        Index("idx_ratings_rated_user", "rated_user"),
    )
