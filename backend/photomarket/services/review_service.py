"""
Review ledger: one immutable review per paid booking, plus read-side
aggregates per photographer.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.config import get_settings
from photomarket.core.exceptions import ConflictError, InvalidStateError, ValidationError
from photomarket.core.logging import get_logger
from photomarket.core.metrics import reviews_posted
from photomarket.core.permissions import ensure_booking_owner, ensure_booking_participant
from photomarket.core.security import Identity
from photomarket.db.session import unit_of_work
from photomarket.domain.payment_state import PaymentStatus
from photomarket.models.payment import Payment
from photomarket.models.review import Review
from photomarket.services.booking_service import get_booking

logger = get_logger(__name__)
settings = get_settings()

MAX_LIST_LIMIT = 50


def validate_rating(rating) -> int:
    # bool is an int subclass; True must not count as a 1-star rating
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5", code="invalid_rating")
    return rating


def sanitize_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None:
        return None
    comment = comment.strip()[: settings.REVIEW_COMMENT_MAX_LENGTH]
    return comment or None


async def post_review(
    db: AsyncSession,
    identity: Identity,
    booking_id: int,
    rating,
    comment: Optional[str] = None,
) -> Review:
    rating = validate_rating(rating)
    comment = sanitize_comment(comment)

    booking = await get_booking(db, booking_id)
    await ensure_booking_owner(db, identity, booking)

    async with unit_of_work(db):
        if booking.photographer_id is None:
            raise InvalidStateError("Booking has no selected photographer", code="no_photographer")

        payment_status = (
            await db.execute(select(Payment.status).where(Payment.booking_id == booking_id))
        ).scalar_one_or_none()
        if payment_status != PaymentStatus.PAID.value:
            raise InvalidStateError("Payment required before reviewing", code="payment_required")

        existing = await db.execute(select(Review.id).where(Review.booking_id == booking_id))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("Review already submitted for this booking", code="duplicate_review")

        review = Review(
            booking_id=booking_id,
            client_id=booking.client_id,
            photographer_id=booking.photographer_id,
            rating=rating,
            comment=comment,
        )
        db.add(review)
        try:
            await db.flush()
        except IntegrityError:
            # unique(booking_id) backstop for two reviews racing each other
            raise ConflictError("Review already submitted for this booking", code="duplicate_review")
        await db.refresh(review)

    reviews_posted.inc()
    logger.info(
        "review_posted",
        review_id=review.id,
        booking_id=booking_id,
        photographer_id=review.photographer_id,
        rating=rating,
    )
    return review


async def list_photographer_reviews(
    db: AsyncSession, photographer_id: int, limit: int = 10, offset: int = 0
) -> list[Review]:
    limit = max(1, min(limit or 10, MAX_LIST_LIMIT))
    offset = max(0, offset or 0)
    result = await db.execute(
        select(Review)
        .where(Review.photographer_id == photographer_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_review_summary(db: AsyncSession, photographer_id: int) -> dict:
    """Average rating and count; zero reviews gives (None, 0)."""
    avg_rating, count = (
        await db.execute(
            select(func.avg(Review.rating), func.count(Review.id)).where(
                Review.photographer_id == photographer_id
            )
        )
    ).one()
    return {
        "photographer_id": photographer_id,
        "avg_rating": float(avg_rating) if avg_rating is not None else None,
        "reviews_count": count or 0,
    }


async def get_booking_review(db: AsyncSession, identity: Identity, booking_id: int) -> Optional[Review]:
    booking = await get_booking(db, booking_id)
    await ensure_booking_participant(db, identity, booking)

    result = await db.execute(select(Review).where(Review.booking_id == booking_id))
    return result.scalar_one_or_none()
