"""
Payment ledger. Payment here is a recorded status flag, not a gateway call.

pay() is the second multi-statement write in the engine, so it runs as one
unit of work: flip the payment UNPAID -> PAID (guarded, so a concurrent
double pay loses), then advance a LOCKED booking to COMPLETED. Paying a
booking that is not LOCKED records the payment and leaves the booking
status alone, which allows deposits before selection.
"""

from decimal import Decimal, InvalidOperation

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.exceptions import AppException, ConflictError, ValidationError
from photomarket.core.logging import get_logger
from photomarket.core.metrics import record_payment
from photomarket.core.permissions import ensure_booking_owner, ensure_booking_participant
from photomarket.core.security import Identity
from photomarket.db.base import utcnow
from photomarket.db.session import unit_of_work
from photomarket.domain.booking_state import BookingStatus
from photomarket.domain.payment_state import PaymentStatus, assert_payment_transition
from photomarket.models.booking import Booking
from photomarket.models.payment import Payment
from photomarket.services.booking_service import get_booking

logger = get_logger(__name__)

MAX_AMOUNT = Decimal("1e10")


def _normalise_amount(amount) -> Decimal:
    try:
        value = Decimal(str(amount if amount is not None else 0))
        if not value.is_finite() or value < 0:
            raise ValidationError("amount must be a non-negative number", code="invalid_amount")
        # payments.amount is Numeric(12, 2)
        if value >= MAX_AMOUNT:
            raise ValidationError("amount is too large", code="invalid_amount")
        return value.quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number", code="invalid_amount")


def _serialize(booking_id: int, payment, booking_status=None) -> dict:
    if payment is None:
        return {
            "booking_id": booking_id,
            "amount": 0.0,
            "status": PaymentStatus.UNPAID,
            "paid_at": None,
            "booking_status": booking_status,
        }
    return {
        "booking_id": booking_id,
        "amount": float(payment.amount or 0),
        "status": PaymentStatus(payment.status),
        "paid_at": payment.paid_at,
        "booking_status": booking_status,
    }


async def pay(db: AsyncSession, identity: Identity, booking_id: int, amount) -> dict:
    """Record payment for a booking. A booking can be paid at most once."""
    booking = await get_booking(db, booking_id)
    try:
        await ensure_booking_owner(db, identity, booking)
        value = _normalise_amount(amount)

        async with unit_of_work(db):
            payment = (
                await db.execute(
                    select(Payment)
                    .where(Payment.booking_id == booking_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
            ).scalar_one_or_none()
            paid_at = utcnow()

            if payment is None:
                # Bookings created before the companion row existed
                payment = Payment(
                    booking_id=booking_id,
                    amount=value,
                    status=PaymentStatus.PAID.value,
                    paid_at=paid_at,
                )
                db.add(payment)
                try:
                    await db.flush()
                except IntegrityError:
                    raise ConflictError("Booking is already paid", code="already_paid")
            else:
                assert_payment_transition(payment.status, PaymentStatus.PAID)
                flipped = await db.execute(
                    update(Payment)
                    .where(Payment.id == payment.id, Payment.status == PaymentStatus.UNPAID.value)
                    .values(status=PaymentStatus.PAID.value, amount=value, paid_at=paid_at)
                    .execution_options(synchronize_session=False)
                )
                if flipped.rowcount != 1:
                    raise ConflictError("Booking is already paid", code="already_paid")

            completed = await db.execute(
                update(Booking)
                .where(Booking.id == booking_id, Booking.status == BookingStatus.LOCKED.value)
                .values(status=BookingStatus.COMPLETED.value, version=Booking.version + 1)
                .execution_options(synchronize_session=False)
            )
    except AppException as exc:
        record_payment(exc.kind)
        if isinstance(exc, ConflictError):
            logger.warning("payment_rejected_duplicate", booking_id=booking_id)
        raise

    await db.refresh(payment)
    await db.refresh(booking)
    record_payment("paid")
    logger.info(
        "payment_recorded",
        booking_id=booking_id,
        amount=str(value),
        booking_completed=completed.rowcount == 1,
    )
    return _serialize(booking_id, payment, BookingStatus(booking.status))


async def get_payment(db: AsyncSession, identity: Identity, booking_id: int) -> dict:
    """Payment state for a booking; an absent row reads as UNPAID / 0."""
    booking = await get_booking(db, booking_id)
    await ensure_booking_participant(db, identity, booking)

    result = await db.execute(select(Payment).where(Payment.booking_id == booking_id))
    return _serialize(booking_id, result.scalar_one_or_none(), BookingStatus(booking.status))
