"""
Booking lifecycle engine: create, read, list and cancel.

Status writes use the same guarded-UPDATE pattern as the selection
transaction: the WHERE clause restates the precondition, and a zero
rowcount means someone else moved the booking first.
"""

from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.config import get_settings
from photomarket.core.exceptions import InvalidStateError, NotFoundError, ValidationError
from photomarket.core.logging import get_logger
from photomarket.core.permissions import ensure_booking_owner, resolve_acting_client
from photomarket.core.security import Identity
from photomarket.db.session import unit_of_work
from photomarket.domain.booking_state import (
    SELECTABLE_STATUSES,
    BookingStatus,
    assert_booking_transition,
)
from photomarket.domain.payment_state import PaymentStatus
from photomarket.models.booking import Booking
from photomarket.models.payment import Payment
from photomarket.schemas.booking import BookingCreate

logger = get_logger(__name__)
settings = get_settings()


async def create_booking(db: AsyncSession, identity: Identity, data: BookingCreate) -> Booking:
    """
    Create an OPEN booking and its UNPAID payment row in one transaction.
    """
    if data.event_date is None:
        raise ValidationError("event_date required", code="event_date_required")

    client_id = await resolve_acting_client(db, identity, data.client_id)

    async with unit_of_work(db):
        booking = Booking(
            client_id=client_id,
            event_date=data.event_date,
            location=data.location or None,
            event_type=data.event_type or None,
            notes=data.notes or None,
            status=BookingStatus.OPEN.value,
        )
        db.add(booking)
        await db.flush()

        db.add(Payment(booking_id=booking.id, amount=0, status=PaymentStatus.UNPAID.value))
        await db.flush()
        await db.refresh(booking)

    logger.info("booking_created", booking_id=booking.id, client_id=client_id, event_date=str(booking.event_date))
    return booking


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    booking = await db.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError("Booking", booking_id)
    return booking


def clamp_page(page: Optional[int], page_size: Optional[int]) -> tuple[int, int]:
    page = max(1, page or 1)
    if page_size is None:
        page_size = settings.LISTING_DEFAULT_PAGE_SIZE
    page_size = max(1, min(settings.LISTING_MAX_PAGE_SIZE, page_size))
    return page, page_size


def parse_status(status: Optional[str]) -> Optional[BookingStatus]:
    if not status:
        return None
    try:
        return BookingStatus(status)
    except ValueError:
        raise ValidationError(f"Unknown booking status: {status}", code="invalid_status")


async def list_bookings(
    db: AsyncSession,
    status: Optional[str] = BookingStatus.OPEN.value,
    location: Optional[str] = None,
    event_type: Optional[str] = None,
    q: Optional[str] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> tuple[list[Booking], int, int, int]:
    """
    Page through bookings ordered by event date. Only OPEN jobs by default;
    an empty status lists every status.
    Returns (rows, total, page, page_size) with page_size clamped to [1, 100].
    """
    page, page_size = clamp_page(page, page_size)
    status_filter = parse_status(status)

    query = select(Booking)
    if status_filter is not None:
        query = query.where(Booking.status == status_filter.value)
    if location:
        query = query.where(Booking.location.ilike(f"%{location}%"))
    if event_type:
        query = query.where(Booking.event_type.ilike(f"%{event_type}%"))
    if q:
        pattern = f"%{q}%"
        query = query.where(
            or_(
                Booking.notes.ilike(pattern),
                Booking.event_type.ilike(pattern),
                Booking.location.ilike(pattern),
            )
        )

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    rows_query = (
        query
        .order_by(Booking.event_date.asc(), Booking.id.asc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    result = await db.execute(rows_query)
    return list(result.scalars().all()), total, page, page_size


async def list_client_bookings(db: AsyncSession, identity: Identity) -> list[Booking]:
    """Bookings owned by the caller's client profile, newest first."""
    client_id = await resolve_acting_client(db, identity)
    result = await db.execute(
        select(Booking)
        .where(Booking.client_id == client_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def cancel_booking(db: AsyncSession, identity: Identity, booking_id: int) -> Booking:
    """
    Cancel a booking that has not been locked yet.
    Applications are kept as they are; the audit trail is append-only.
    """
    booking = await get_booking(db, booking_id)
    await ensure_booking_owner(db, identity, booking)

    async with unit_of_work(db):
        result = await db.execute(
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.status.in_([s.value for s in SELECTABLE_STATUSES]),
            )
            .values(status=BookingStatus.CANCELLED.value, version=Booking.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.refresh(booking)
            assert_booking_transition(booking.status, BookingStatus.CANCELLED)

    await db.refresh(booking)
    logger.info("booking_cancelled", booking_id=booking_id, by_user=identity.user_id)
    return booking
