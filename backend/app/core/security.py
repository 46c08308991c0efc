"""Access-token handling.

Tokens are issued by the authentication service; this backend only verifies them and
resolves the subject to a user id. ``create_access_token`` exists for tooling and tests.
"""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"


def create_access_token(user_id: UUID, *, expires_minutes: int | None = None) -> str:
    now = dt.datetime.now(dt.timezone.utc)
    claims = {
        "sub": str(user_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": now + dt.timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def read_access_token(token: str) -> UUID:
    """Return the user id carried by a valid access token.

    Raises ``ValueError("expired_token")`` or ``ValueError("invalid_token")``.
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise ValueError("expired_token") from exc
    except JWTError as exc:
        raise ValueError("invalid_token") from exc

    token_type = claims.get("type")
    if token_type and token_type != ACCESS_TOKEN_TYPE:
        raise ValueError("invalid_token")
    try:
        return UUID(str(claims.get("sub") or ""))
    except ValueError as exc:
        raise ValueError("invalid_token") from exc
