"""
Booking model: a client's posted photography job.

Key design decisions:
- photographer_id stays NULL until the selection transaction locks the
  booking; the CHECK constraint ties it to the status column, so it is set
  exactly when the status is LOCKED or COMPLETED. A booking therefore can
  never be CANCELLED after lock (cancel only runs from OPEN/IN_REVIEW)
- `version` is bumped on every lifecycle write so guarded UPDATEs can
  detect a concurrent writer
- Index on (status, event_date) backs the public listing query
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from photomarket.db.base import Base, TimestampMixin
from photomarket.domain.booking_state import BookingStatus


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)
    photographer_id = Column(Integer, ForeignKey("photographers.id"), nullable=True, index=True)
    event_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    event_type = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=BookingStatus.OPEN.value)

    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint(
            "status IN ('OPEN', 'IN_REVIEW', 'LOCKED', 'COMPLETED', 'CANCELLED')",
            name="check_booking_status",
        ),
        CheckConstraint(
            "(status IN ('LOCKED', 'COMPLETED')) = (photographer_id IS NOT NULL)",
            name="check_booking_photographer_assigned",
        ),
        Index("ix_bookings_event_date", "event_date"),
        Index("ix_bookings_status_event_date", "status", "event_date"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, client={self.client_id}, status={self.status})>"
