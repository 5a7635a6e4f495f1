"""
Identity boundary: password hashing, token issuance and verification.

Tokens bind a user id and a role. Once the signature checks out the claims
are trusted as-is; nothing here goes back to the database.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from photomarket.core.config import get_settings
from photomarket.core.exceptions import AuthError, ForbiddenError

settings = get_settings()

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)


class Role(str, Enum):
    CLIENT = "client"
    PHOTOGRAPHER = "photographer"
    ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: Role
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def issue_token(user_id: int, role: Role, name: Optional[str] = None) -> str:
    return create_access_token({"sub": str(user_id), "role": Role(role).value, "name": name})


def decode_identity(token: str) -> Identity:
    """Verify a bearer token and turn its claims into an Identity."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthError("Invalid token")

    sub = payload.get("sub")
    role = payload.get("role")
    try:
        return Identity(user_id=int(sub), role=Role(role), name=payload.get("name"))
    except (TypeError, ValueError):
        raise AuthError("Invalid token payload")


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Missing token")
    return decode_identity(credentials.credentials)


def require_roles(*roles: Role):
    """Dependency factory: authenticated caller holding one of ``roles``."""
    allowed = set(roles)

    async def checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise ForbiddenError("Forbidden")
        return identity

    return checker
