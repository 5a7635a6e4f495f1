"""
Application registry and selection endpoints, nested under a booking.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.security import Identity, Role, require_roles
from photomarket.db.session import get_db
from photomarket.schemas.application import (
    ApplicantResponse,
    ApplicationCreate,
    ApplicationResponse,
    SelectionRequest,
    SelectionResponse,
)
from photomarket.services import application_service, selection_service
from photomarket.services.cache_service import invalidate_listing_cache

router = APIRouter(prefix="/bookings", tags=["Applications"])


@router.post(
    "/{booking_id}/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply_to_booking(
    booking_id: int,
    data: Optional[ApplicationCreate] = Body(None),
    identity: Identity = Depends(require_roles(Role.PHOTOGRAPHER, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Apply to shoot a booking. One application per photographer per booking."""
    photographer_id = data.photographer_id if data else None
    return await application_service.apply(db, identity, booking_id, photographer_id)


@router.get("/{booking_id}/applications", response_model=list[ApplicantResponse])
async def list_applications(
    booking_id: int,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Applicants for a booking, newest first. Owning client or admin only."""
    return await application_service.list_applications(db, identity, booking_id)


@router.post("/{booking_id}/select", response_model=SelectionResponse)
async def select_application(
    booking_id: int,
    data: SelectionRequest,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Choose one application. Locks the booking to that photographer and
    rejects every other pending application, atomically.
    """
    outcome = await selection_service.select_application(db, identity, booking_id, data.application_id)
    await invalidate_listing_cache()
    return outcome
