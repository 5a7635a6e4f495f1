"""
Portfolio images. Upload and serving live elsewhere; the engine only
counts rows per photographer when listing applicants.
"""

from sqlalchemy import Column, ForeignKey, Integer, String

from photomarket.db.base import Base, TimestampMixin


class PortfolioImage(Base, TimestampMixin):
    __tablename__ = "portfolio_images"

    id = Column(Integer, primary_key=True, index=True)
    photographer_id = Column(
        Integer, ForeignKey("photographers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    image_url = Column(String(500), nullable=False)
    caption = Column(String(255), nullable=True)
