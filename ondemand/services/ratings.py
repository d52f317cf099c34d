"""Rating ledger: append-only feedback on completed bookings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ondemand.domain.enums import BookingStatus
from ondemand.domain.errors import (
    BookingNotCompleted,
    DuplicateRating,
    InvalidScore,
    NotFound,
)
from ondemand.infrastructure.models import RatingModel
from ondemand.infrastructure.repositories import BookingRepository, RatingRepository

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5


@dataclass(frozen=True)
class RatingSummary:
    user_id: str
    average: Optional[float]
    count: int


class RatingLedger:
    async def submit(
        self,
        session: AsyncSession,
        booking_id: str,
        rater_id: str,
        rated_user_id: str,
        score: int,
        review: Optional[str] = None,
    ) -> RatingModel:
        if (
            isinstance(score, bool)
            or not isinstance(score, int)
            or not MIN_SCORE <= score <= MAX_SCORE
        ):
            raise InvalidScore()

        booking = await BookingRepository(session).get_by_id(booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        if BookingStatus(booking.status) is not BookingStatus.COMPLETED:
            raise BookingNotCompleted()

        rating = RatingModel(
            booking_id=booking_id,
            rated_by=rater_id,
            rated_user=rated_user_id,
            score=score,
            review=review,
        )
        try:
            await RatingRepository(session).create(rating)
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            raise DuplicateRating() from exc

        logger.info("Rating %s on booking %s by %s", score, booking_id, rater_id)
        return rating

    async def summary(self, session: AsyncSession, user_id: str) -> RatingSummary:
        average, count = await RatingRepository(session).summary_for(user_id)
        if average is not None:
            average = round(average, 2)
        return RatingSummary(user_id=user_id, average=average, count=count)
