"""Booking state machine."""

from enum import Enum

from photomarket.core.exceptions import InvalidStateError


class BookingStatus(str, Enum):
    OPEN = "OPEN"
    IN_REVIEW = "IN_REVIEW"
    LOCKED = "LOCKED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


BOOKING_TRANSITIONS = {
    BookingStatus.OPEN: {BookingStatus.IN_REVIEW, BookingStatus.LOCKED, BookingStatus.CANCELLED},
    BookingStatus.IN_REVIEW: {BookingStatus.LOCKED, BookingStatus.CANCELLED},
    BookingStatus.LOCKED: {BookingStatus.COMPLETED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}

# States from which a photographer can still be chosen
SELECTABLE_STATUSES = frozenset({BookingStatus.OPEN, BookingStatus.IN_REVIEW})


def can_transition(current, target) -> bool:
    return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]


def assert_booking_transition(current, target) -> None:
    if not can_transition(current, target):
        raise InvalidStateError(
            f"Invalid booking transition: {BookingStatus(current).value} -> {BookingStatus(target).value}"
        )


def is_selectable(status) -> bool:
    return BookingStatus(status) in SELECTABLE_STATUSES
