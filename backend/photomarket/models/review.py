"""
Review: at most one per booking, ever. client_id and photographer_id are
copied from the booking at write time so per-photographer aggregates do
not need a join.
"""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Text

from photomarket.db.base import Base, TimestampMixin


class Review(Base, TimestampMixin):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), unique=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    photographer_id = Column(
        Integer, ForeignKey("photographers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="check_review_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<Review(booking={self.booking_id}, rating={self.rating})>"
