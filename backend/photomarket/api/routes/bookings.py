"""
Booking lifecycle endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.logging import get_logger
from photomarket.core.security import Identity, Role, require_roles
from photomarket.db.session import get_db
from photomarket.domain.booking_state import BookingStatus
from photomarket.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
)
from photomarket.services import booking_service
from photomarket.services.cache_service import (
    get_cached_listing,
    invalidate_listing_cache,
    make_listing_key,
    set_cached_listing,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Post a new job. Starts OPEN with an UNPAID payment row."""
    booking = await booking_service.create_booking(db, identity, booking_data)
    await invalidate_listing_cache()
    return booking


@router.get("/", response_model=BookingListResponse)
async def list_bookings(
    status_filter: Optional[str] = Query(BookingStatus.OPEN.value, alias="status"),
    location: Optional[str] = Query(None),
    event_type: Optional[str] = Query(None),
    q: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    db: AsyncSession = Depends(get_db),
):
    """
    Public listing ordered by event date, OPEN jobs unless `status` says
    otherwise (`status=` lists every status). pageSize is clamped to [1, 100].
    Pages are cached in Redis until the next booking write.
    """
    page, page_size = booking_service.clamp_page(page, page_size)
    filters = {"status": status_filter, "location": location, "event_type": event_type, "q": q}
    cache_key = make_listing_key(filters, page, page_size)

    cached = await get_cached_listing(cache_key)
    if cached:
        cached["cached"] = True
        return BookingListResponse(**cached)

    rows, total, page, page_size = await booking_service.list_bookings(
        db, status_filter, location, event_type, q, page, page_size
    )
    response_data = {
        "rows": [BookingResponse.model_validate(b).model_dump(mode="json") for b in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_listing(cache_key, response_data)
    return BookingListResponse(**response_data)


@router.get("/mine", response_model=list[BookingResponse])
async def list_my_bookings(
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.list_client_bookings(db, identity)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(booking_id: int, db: AsyncSession = Depends(get_db)):
    return await booking_service.get_booking(db, booking_id)


@router.post("/{booking_id}/cancel", response_model=BookingCancelResponse)
async def cancel_booking(
    booking_id: int,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Cancel an OPEN or IN_REVIEW booking."""
    booking = await booking_service.cancel_booking(db, identity, booking_id)
    await invalidate_listing_cache()
    return BookingCancelResponse(
        message="Booking cancelled successfully",
        booking_id=booking.id,
        status=booking.status,
    )
