"""
Booking_Application: a photographer's bid on a booking.

Rows are never deleted. The unique (booking_id, photographer_id) pair is
the backstop for one application per photographer per booking.
"""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from photomarket.db.base import Base, utcnow
from photomarket.domain.application_state import ApplicationStatus


class BookingApplication(Base):
    __tablename__ = "booking_applications"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    photographer_id = Column(Integer, ForeignKey("photographers.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)
    applied_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("booking_id", "photographer_id", name="uq_booking_photographer_application"),
        CheckConstraint("status IN ('PENDING', 'ACCEPTED', 'REJECTED')", name="check_application_status"),
    )

    def __repr__(self) -> str:
        return (
            f"<BookingApplication(id={self.id}, booking={self.booking_id}, "
            f"photographer={self.photographer_id}, status={self.status})>"
        )
