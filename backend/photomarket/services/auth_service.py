"""
Identity adapter: registration and login.

Registration writes the user and its role profile (Client or Photographer)
in one transaction so a booking or an application always has a profile to
point at.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.core.exceptions import AuthError, ConflictError, ForbiddenError
from photomarket.core.logging import get_logger
from photomarket.core.security import Role, hash_password, issue_token, verify_password
from photomarket.db.session import unit_of_work
from photomarket.models.user import Client, Photographer, User
from photomarket.schemas.user import UserCreate, UserLogin

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> tuple[User, int]:
    """
    Register a user with the profile matching its role.
    Returns (user, profile_id). Raises 409 if the email is taken.
    """
    result = await db.execute(select(User.id).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise ConflictError("Email already registered", code="email_exists")

    async with unit_of_work(db):
        user = User(
            email=user_data.email,
            name=user_data.name,
            role=user_data.role,
            hashed_password=hash_password(user_data.password),
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            raise ConflictError("Email already registered", code="email_exists")

        if Role(user_data.role) is Role.CLIENT:
            profile = Client(user_id=user.id, phone=user_data.phone)
        else:
            profile = Photographer(user_id=user.id, phone=user_data.phone)
        db.add(profile)
        await db.flush()
        await db.refresh(user)

    logger.info("user_registered", user_id=user.id, role=user.role, profile_id=profile.id)
    return user, profile.id


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[str, User]:
    """
    Authenticate user and return (token, user).
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise AuthError("Invalid email or password", code="invalid_credentials")

    if not user.is_active:
        raise ForbiddenError("Account is deactivated")

    token = issue_token(user.id, Role(user.role), user.name)
    logger.info("user_logged_in", user_id=user.id, role=user.role)
    return token, user
