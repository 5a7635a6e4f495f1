from photomarket.domain.application_state import ApplicationStatus
from photomarket.domain.booking_state import BookingStatus
from photomarket.domain.payment_state import PaymentStatus

__all__ = ["ApplicationStatus", "BookingStatus", "PaymentStatus"]
