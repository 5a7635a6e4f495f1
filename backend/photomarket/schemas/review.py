"""
Pydantic schemas for the review ledger.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ReviewCreate(BaseModel):
    # Range is enforced by the ledger so the error kind stays consistent
    rating: Optional[int] = None
    comment: Optional[str] = None


class ReviewResponse(BaseModel):
    id: int
    booking_id: int
    client_id: int
    photographer_id: int
    rating: int
    comment: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class ReviewSummary(BaseModel):
    photographer_id: int
    avg_rating: Optional[float]
    reviews_count: int


class BookingReviewResponse(BaseModel):
    exists: bool
    review: Optional[ReviewResponse] = None
