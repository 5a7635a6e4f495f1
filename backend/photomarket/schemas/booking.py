"""
Pydantic schemas for booking lifecycle request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from photomarket.domain.booking_state import BookingStatus


class BookingCreate(BaseModel):
    # Optional here so a missing date surfaces as the engine's ValidationError
    event_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=255)
    event_type: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=5000)
    client_id: Optional[int] = Field(None, description="Acting client profile; admins only")


class BookingResponse(BaseModel):
    id: int
    client_id: int
    photographer_id: Optional[int]
    event_date: datetime
    location: Optional[str]
    event_type: Optional[str]
    notes: Optional[str]
    status: BookingStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class BookingListResponse(BaseModel):
    rows: list[BookingResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: BookingStatus
