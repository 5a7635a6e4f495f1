"""
Review ledger endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.security import Identity, Role, get_current_identity, require_roles
from photomarket.db.session import get_db
from photomarket.schemas.review import BookingReviewResponse, ReviewCreate, ReviewResponse, ReviewSummary
from photomarket.services import review_service

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("/{booking_id}", response_model=ReviewResponse, status_code=201)
async def post_review(
    booking_id: int,
    data: ReviewCreate,
    identity: Identity = Depends(require_roles(Role.CLIENT, Role.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Leave the one review a paid booking allows."""
    return await review_service.post_review(db, identity, booking_id, data.rating, data.comment)


@router.get("/photographer/{photographer_id}", response_model=list[ReviewResponse])
async def list_photographer_reviews(
    photographer_id: int,
    limit: int = Query(10),
    offset: int = Query(0),
    db: AsyncSession = Depends(get_db),
):
    return await review_service.list_photographer_reviews(db, photographer_id, limit, offset)


@router.get("/summary/{photographer_id}", response_model=ReviewSummary)
async def review_summary(photographer_id: int, db: AsyncSession = Depends(get_db)):
    return await review_service.get_review_summary(db, photographer_id)


@router.get("/booking/{booking_id}", response_model=BookingReviewResponse)
async def booking_review(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.get_booking_review(db, identity, booking_id)
    if review is None:
        return BookingReviewResponse(exists=False)
    return BookingReviewResponse(exists=True, review=ReviewResponse.model_validate(review))
