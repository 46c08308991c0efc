"""FastAPI dependencies resolving the caller of an import endpoint."""

from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import AuthenticationException, ExpiredTokenError, InsufficientPermissionsError
from app.core.security import read_access_token
from app.db.session import get_db
from app.models.enums import UserRole
from app.models.user import User


def _request_token(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.COOKIE_NAME) or None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = _request_token(request)
    if not token:
        raise AuthenticationException("not_authenticated", error_code="NOT_AUTHENTICATED", status_code=401)

    try:
        user_id = read_access_token(token)
    except ValueError as exc:
        if str(exc) == "expired_token":
            raise ExpiredTokenError("access_token_expired")
        raise AuthenticationException("invalid_token", error_code="INVALID_TOKEN", status_code=401)

    user = db.get(User, user_id)
    if user is None:
        raise AuthenticationException("user_not_found", error_code="USER_NOT_FOUND", status_code=401)
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    """Imports run as an administrator, who also owns records with unresolved authors."""
    if user.role != UserRole.admin:
        raise InsufficientPermissionsError("forbidden")
    return user
