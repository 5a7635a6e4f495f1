"""
Payment ledger endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.security import Identity, Role, get_current_identity, require_roles
from photomarket.db.session import get_db
from photomarket.schemas.payment import PaymentRequest, PaymentResponse
from photomarket.services import payment_service
from photomarket.services.cache_service import invalidate_listing_cache

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/{booking_id}/pay", response_model=PaymentResponse)
async def pay_booking(
    booking_id: int,
    data: PaymentRequest,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Mark a booking paid. A LOCKED booking moves to COMPLETED."""
    payment = await payment_service.pay(db, identity, booking_id, data.amount)
    await invalidate_listing_cache()
    return payment


@router.get("/{booking_id}", response_model=PaymentResponse)
async def get_payment(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await payment_service.get_payment(db, identity, booking_id)
