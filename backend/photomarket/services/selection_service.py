"""
Selection transaction: promote one application, lock the booking to its
photographer, reject every other pending application.

CONCURRENCY STRATEGY: row lock + guarded UPDATE + retry
======================================================

Problem:
  Two selection calls for the same booking arrive together. Both read the
  booking as OPEN and their target application as PENDING, both write,
  and the booking ends up with two ACCEPTED applications.

Solution:
  All precondition checks and all effects run inside one unit of work.

  1. SELECT the booking (FOR UPDATE where the dialect supports it, so on
     PostgreSQL the second caller blocks here until the first commits)
  2. Validate the booking, then the application, in a fixed order so each
     failure maps to its own error kind
  3. UPDATE bookings SET status='LOCKED', photographer_id=:p,
            version = version + 1
     WHERE id = :id AND version = :read_version
       AND status IN ('OPEN', 'IN_REVIEW')
  4. UPDATE the chosen application WHERE status = 'PENDING'
  5. UPDATE sibling applications WHERE status = 'PENDING' to REJECTED

  If step 3 or 4 touches no row, another writer got there between our read
  and our write (stores without row locks, e.g. SQLite). The unit of work
  rolls back and the whole sequence is re-run from step 1, so the loser
  re-validates and fails with the precondition it now violates instead of
  replaying stale writes.

  Invariants this guarantees:
  - at most one ACCEPTED application per booking
  - bookings.photographer_id equals the ACCEPTED application's photographer
  - a failed call leaves booking and application rows untouched
"""

import time

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.config import get_settings
from photomarket.core.exceptions import (
    AppException,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from photomarket.core.logging import get_logger
from photomarket.core.metrics import record_selection, selection_latency, selection_retries
from photomarket.core.permissions import ensure_booking_owner
from photomarket.core.security import Identity
from photomarket.db.session import unit_of_work
from photomarket.domain.application_state import ApplicationStatus, assert_application_transition
from photomarket.domain.booking_state import SELECTABLE_STATUSES, BookingStatus
from photomarket.models.application import BookingApplication
from photomarket.models.booking import Booking
from photomarket.services.booking_service import get_booking

logger = get_logger(__name__)
settings = get_settings()

MAX_RETRY_ATTEMPTS = settings.SELECTION_MAX_RETRIES


class LostRace(Exception):
    """A guarded UPDATE matched no row; re-run the transaction."""


async def select_application(
    db: AsyncSession,
    identity: Identity,
    booking_id: int,
    application_id: int,
) -> dict:
    """
    Run the selection transaction for ``application_id`` on ``booking_id``.
    The ownership check happens once, before the transaction boundary.
    """
    if application_id is None:
        raise ValidationError("application_id required", code="application_id_required")

    booking = await get_booking(db, booking_id)
    await ensure_booking_owner(db, identity, booking)

    started = time.perf_counter()
    try:
        for attempt in range(1, MAX_RETRY_ATTEMPTS + 1):
            try:
                async with unit_of_work(db):
                    outcome = await _select_once(db, booking_id, application_id)
            except LostRace:
                selection_retries.inc()
                logger.info(
                    "selection_retry",
                    booking_id=booking_id,
                    application_id=application_id,
                    attempt=attempt,
                )
                continue

            record_selection("locked")
            logger.info(
                "selection_completed",
                booking_id=booking_id,
                application_id=application_id,
                photographer_id=outcome["photographer_id"],
                rejected=outcome["rejected_count"],
                attempt=attempt,
            )
            return outcome

        raise ConflictError(
            "Selection failed due to concurrent updates. Please try again.",
            code="selection_contended",
        )
    except AppException as exc:
        record_selection(exc.kind)
        logger.warning(
            "selection_rejected",
            booking_id=booking_id,
            application_id=application_id,
            kind=exc.kind,
            code=exc.code,
        )
        raise
    finally:
        selection_latency.observe(time.perf_counter() - started)


async def _select_once(db: AsyncSession, booking_id: int, application_id: int) -> dict:
    booking = (
        await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking", booking_id)

    status = BookingStatus(booking.status)
    if status not in SELECTABLE_STATUSES:
        code = "booking_locked" if status is BookingStatus.LOCKED else "booking_closed"
        raise InvalidStateError("Booking not selectable", code=code)

    application = (
        await db.execute(
            select(BookingApplication)
            .where(BookingApplication.id == application_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if application is None:
        raise NotFoundError("Application", application_id, code="application_not_found")
    if application.booking_id != booking_id:
        raise ValidationError(
            "Application does not belong to this booking", code="application_wrong_booking"
        )
    assert_application_transition(application.status, ApplicationStatus.ACCEPTED)

    photographer_id = application.photographer_id

    locked = await db.execute(
        update(Booking)
        .where(
            Booking.id == booking_id,
            Booking.version == booking.version,
            Booking.status.in_([s.value for s in SELECTABLE_STATUSES]),
        )
        .values(
            photographer_id=photographer_id,
            status=BookingStatus.LOCKED.value,
            version=Booking.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if locked.rowcount != 1:
        raise LostRace()

    accepted = await db.execute(
        update(BookingApplication)
        .where(
            BookingApplication.id == application_id,
            BookingApplication.status == ApplicationStatus.PENDING.value,
        )
        .values(status=ApplicationStatus.ACCEPTED.value)
        .execution_options(synchronize_session=False)
    )
    if accepted.rowcount != 1:
        raise LostRace()

    # Already-settled siblings keep their status
    rejected = await db.execute(
        update(BookingApplication)
        .where(
            BookingApplication.booking_id == booking_id,
            BookingApplication.id != application_id,
            BookingApplication.status == ApplicationStatus.PENDING.value,
        )
        .values(status=ApplicationStatus.REJECTED.value)
        .execution_options(synchronize_session=False)
    )

    return {
        "booking_id": booking_id,
        "status": BookingStatus.LOCKED,
        "photographer_id": photographer_id,
        "selected_application_id": application_id,
        "rejected_count": rejected.rowcount,
    }
