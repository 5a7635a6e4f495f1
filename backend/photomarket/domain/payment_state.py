"""Payment state machine."""

from enum import Enum

from photomarket.core.exceptions import ConflictError


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"


PAYMENT_TRANSITIONS = {
    PaymentStatus.UNPAID: {PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}


def assert_payment_transition(current, target) -> None:
    current, target = PaymentStatus(current), PaymentStatus(target)
    if target not in PAYMENT_TRANSITIONS[current]:
        # The only illegal move in practice is paying twice
        raise ConflictError("Booking is already paid", code="already_paid")
