"""
Identity-side rows: the login account plus the role profile hanging off it.

A user registered as ``client`` gets one Client row, a ``photographer`` gets
one Photographer row. Bookings and applications point at the profile ids,
not at users.
"""

from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Integer, String, Text

from photomarket.db.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(120), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("role IN ('client', 'photographer', 'admin')", name="check_user_role"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"


class Client(Base, TimestampMixin):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    phone = Column(String(40), nullable=True)

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, user={self.user_id})>"


class Photographer(Base, TimestampMixin):
    __tablename__ = "photographers"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    phone = Column(String(40), nullable=True)
    bio = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Photographer(id={self.id}, user={self.user_id})>"
