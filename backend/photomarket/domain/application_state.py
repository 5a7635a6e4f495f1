"""Application state machine. PENDING settles exactly once."""

from enum import Enum

from photomarket.core.exceptions import InvalidStateError


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED},
    ApplicationStatus.ACCEPTED: set(),
    ApplicationStatus.REJECTED: set(),
}


def assert_application_transition(current, target) -> None:
    current, target = ApplicationStatus(current), ApplicationStatus(target)
    if target not in APPLICATION_TRANSITIONS[current]:
        raise InvalidStateError(
            "Application is not pending" if current is not ApplicationStatus.PENDING
            else f"Invalid application transition: {current.value} -> {target.value}",
            code="application_not_pending",
        )
