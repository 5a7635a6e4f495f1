"""
Pydantic schemas for the payment ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from photomarket.domain.booking_state import BookingStatus
from photomarket.domain.payment_state import PaymentStatus


class PaymentRequest(BaseModel):
    amount: Decimal = Decimal("0")


class PaymentResponse(BaseModel):
    booking_id: int
    amount: float
    status: PaymentStatus
    paid_at: Optional[datetime] = None
    booking_status: Optional[BookingStatus] = None
