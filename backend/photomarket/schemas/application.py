"""
Pydantic schemas for applications and the selection transaction.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from photomarket.domain.application_state import ApplicationStatus
from photomarket.domain.booking_state import BookingStatus


class ApplicationCreate(BaseModel):
    photographer_id: Optional[int] = Field(None, description="Acting photographer profile; admins only")


class ApplicationResponse(BaseModel):
    id: int
    booking_id: int
    photographer_id: int
    status: ApplicationStatus
    applied_at: datetime

    model_config = {"from_attributes": True}


class ApplicantResponse(BaseModel):
    """An application as the booking owner sees it."""

    id: int
    booking_id: int
    photographer_id: int
    photographer_name: str
    portfolio_count: int
    status: ApplicationStatus
    applied_at: datetime


class SelectionRequest(BaseModel):
    application_id: Optional[int] = None


class SelectionResponse(BaseModel):
    booking_id: int
    status: BookingStatus
    photographer_id: int
    selected_application_id: int
    rejected_count: int
