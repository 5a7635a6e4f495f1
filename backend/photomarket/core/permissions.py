"""
Capability checks, run once per operation before any transaction starts.

The identity only carries a user id and a role; bookings and applications
reference Client / Photographer profile ids. Everything that maps one onto
the other lives here so routes and services never compare ids by hand.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from photomarket.core.security import Identity, Role
from photomarket.models.booking import Booking
from photomarket.models.user import Client, Photographer


async def get_client_profile(db: AsyncSession, user_id: int) -> Optional[Client]:
    result = await db.execute(select(Client).where(Client.user_id == user_id))
    return result.scalar_one_or_none()


async def get_photographer_profile(db: AsyncSession, user_id: int) -> Optional[Photographer]:
    result = await db.execute(select(Photographer).where(Photographer.user_id == user_id))
    return result.scalar_one_or_none()


async def resolve_acting_client(
    db: AsyncSession, identity: Identity, client_id: Optional[int] = None
) -> int:
    """Client profile id a write is performed on behalf of."""
    if identity.is_admin:
        if client_id is None:
            profile = await get_client_profile(db, identity.user_id)
            if profile is None:
                raise ValidationError("client_id required for admin bookings")
            return profile.id
        if await db.get(Client, client_id) is None:
            raise NotFoundError("Client", client_id)
        return client_id

    profile = await get_client_profile(db, identity.user_id)
    if profile is None:
        raise ForbiddenError("Client profile not found")
    return profile.id


async def resolve_acting_photographer(
    db: AsyncSession, identity: Identity, photographer_id: Optional[int] = None
) -> int:
    """Photographer profile id a write is performed on behalf of."""
    if identity.is_admin:
        if photographer_id is None:
            profile = await get_photographer_profile(db, identity.user_id)
            if profile is None:
                raise ValidationError("photographer_id required for admin applications")
            return profile.id
        if await db.get(Photographer, photographer_id) is None:
            raise NotFoundError("Photographer", photographer_id)
        return photographer_id

    profile = await get_photographer_profile(db, identity.user_id)
    if profile is None:
        raise ForbiddenError("Photographer profile not found")
    return profile.id


async def ensure_booking_owner(db: AsyncSession, identity: Identity, booking: Booking) -> None:
    """Owning client or admin."""
    if identity.is_admin:
        return
    if identity.role is Role.CLIENT:
        profile = await get_client_profile(db, identity.user_id)
        if profile is not None and profile.id == booking.client_id:
            return
    raise ForbiddenError("Only the booking owner can perform this action")


async def ensure_booking_participant(db: AsyncSession, identity: Identity, booking: Booking) -> None:
    """Owning client, the assigned photographer, or admin."""
    if identity.is_admin:
        return
    if identity.role is Role.CLIENT:
        profile = await get_client_profile(db, identity.user_id)
        if profile is not None and profile.id == booking.client_id:
            return
    elif identity.role is Role.PHOTOGRAPHER and booking.photographer_id is not None:
        profile = await get_photographer_profile(db, identity.user_id)
        if profile is not None and profile.id == booking.photographer_id:
            return
    raise ForbiddenError("You can only access your own bookings")
