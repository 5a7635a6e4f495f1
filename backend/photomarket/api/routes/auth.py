"""
Identity adapter endpoints: register and login.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from photomarket.db.session import get_db
from photomarket.schemas.user import Token, UserCreate, UserLogin, UserResponse
from photomarket.services.auth_service import authenticate_user, register_user

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a client or photographer account with its profile."""
    user, profile_id = await register_user(db, user_data)
    response = UserResponse.model_validate(user)
    response.profile_id = profile_id
    return response


@router.post("/login", response_model=Token)
async def login(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a bearer token carrying user id and role."""
    token, user = await authenticate_user(db, login_data)
    return Token(access_token=token, role=user.role, name=user.name)
