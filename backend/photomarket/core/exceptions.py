"""
Domain error taxonomy.

Every error carries a stable ``kind`` (the category a client switches on)
and an optional ``code`` that narrows it down, e.g. an ``invalid_state``
selection failure is either ``booking_locked`` or ``booking_closed``.
They subclass HTTPException so FastAPI already knows the status code; the
handler in main.py renders the structured body.
"""

from typing import Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base class for errors surfaced to API callers."""

    kind = "internal_error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "An unexpected error occurred"

    def __init__(
        self,
        detail: Optional[str] = None,
        code: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.code = code
        super().__init__(
            status_code=self.default_status,
            detail=detail or self.default_detail,
            headers=headers,
        )

    def to_dict(self) -> dict:
        return {"detail": self.detail, "kind": self.kind, "code": self.code}


class ValidationError(AppException):
    """Malformed or missing input."""

    kind = "validation_error"
    default_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation failed"


class NotFoundError(AppException):
    kind = "not_found"
    default_status = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", identifier=None, code: Optional[str] = None) -> None:
        detail = f"{resource} not found"
        if identifier is not None:
            detail = f"{resource} {identifier} not found"
        super().__init__(detail=detail, code=code)


class ConflictError(AppException):
    """Duplicate application, double payment, duplicate review."""

    kind = "conflict"
    default_status = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class InvalidStateError(AppException):
    """Operation attempted from the wrong lifecycle state."""

    kind = "invalid_state"
    default_status = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state"


class ForbiddenError(AppException):
    kind = "forbidden"
    default_status = status.HTTP_403_FORBIDDEN
    default_detail = "You don't have permission to perform this action"


class AuthError(AppException):
    kind = "auth_error"
    default_status = status.HTTP_401_UNAUTHORIZED
    default_detail = "Could not validate credentials"

    def __init__(self, detail: Optional[str] = None, code: Optional[str] = None) -> None:
        super().__init__(detail=detail, code=code, headers={"WWW-Authenticate": "Bearer"})
