"""
Application registry: photographers bid on bookings, owners review the bids.

The registry refuses new applications once a booking has left
OPEN/IN_REVIEW; callers do not have to pre-check the booking status.
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.exceptions import ConflictError, InvalidStateError
from photomarket.core.logging import get_logger
from photomarket.core.metrics import record_application
from photomarket.core.permissions import ensure_booking_owner, resolve_acting_photographer
from photomarket.core.security import Identity
from photomarket.db.session import unit_of_work
from photomarket.domain.application_state import ApplicationStatus
from photomarket.domain.booking_state import is_selectable
from photomarket.models.application import BookingApplication
from photomarket.models.portfolio import PortfolioImage
from photomarket.models.user import Photographer, User
from photomarket.services.booking_service import get_booking

logger = get_logger(__name__)


async def apply(
    db: AsyncSession,
    identity: Identity,
    booking_id: int,
    photographer_id: Optional[int] = None,
) -> BookingApplication:
    """Record a PENDING application; one per photographer per booking."""
    photographer_id = await resolve_acting_photographer(db, identity, photographer_id)

    async with unit_of_work(db):
        booking = await get_booking(db, booking_id)
        if not is_selectable(booking.status):
            record_application("rejected")
            raise InvalidStateError("Booking is not accepting applications", code="booking_not_open")

        existing = await db.execute(
            select(BookingApplication.id).where(
                BookingApplication.booking_id == booking_id,
                BookingApplication.photographer_id == photographer_id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            record_application("duplicate")
            logger.info("application_duplicate", booking_id=booking_id, photographer_id=photographer_id)
            raise ConflictError("Already applied", code="duplicate_application")

        application = BookingApplication(
            booking_id=booking_id,
            photographer_id=photographer_id,
            status=ApplicationStatus.PENDING.value,
        )
        db.add(application)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race against the same photographer's parallel request
            record_application("duplicate")
            raise ConflictError("Already applied", code="duplicate_application")
        await db.refresh(application)

    record_application("created")
    logger.info(
        "application_submitted",
        application_id=application.id,
        booking_id=booking_id,
        photographer_id=photographer_id,
    )
    return application


async def list_applications(db: AsyncSession, identity: Identity, booking_id: int) -> list[dict]:
    """Applications for a booking, newest first, with applicant name and portfolio size."""
    booking = await get_booking(db, booking_id)
    await ensure_booking_owner(db, identity, booking)

    portfolio_count = (
        select(func.count(PortfolioImage.id))
        .where(PortfolioImage.photographer_id == BookingApplication.photographer_id)
        .correlate(BookingApplication)
        .scalar_subquery()
    )
    result = await db.execute(
        select(
            BookingApplication,
            User.name.label("photographer_name"),
            portfolio_count.label("portfolio_count"),
        )
        .join(Photographer, Photographer.id == BookingApplication.photographer_id)
        .join(User, User.id == Photographer.user_id)
        .where(BookingApplication.booking_id == booking_id)
        .order_by(BookingApplication.applied_at.desc(), BookingApplication.id.desc())
    )

    return [
        {
            "id": application.id,
            "booking_id": application.booking_id,
            "photographer_id": application.photographer_id,
            "photographer_name": photographer_name,
            "portfolio_count": count or 0,
            "status": application.status,
            "applied_at": application.applied_at,
        }
        for application, photographer_name, count in result.all()
    ]
