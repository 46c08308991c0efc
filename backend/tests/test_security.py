from __future__ import annotations

from uuid import uuid4

import pytest
from jose import jwt

from app.core.config import settings
from app.core.security import create_access_token, read_access_token


def test_access_token_resolves_to_user_id() -> None:
    user_id = uuid4()

    assert read_access_token(create_access_token(user_id)) == user_id


@pytest.mark.parametrize(
    ("claims", "reason"),
    [
        ({"sub": "not-a-uuid", "type": "access"}, "invalid_token"),
        ({"sub": str(uuid4()), "type": "refresh"}, "invalid_token"),
        ({"type": "access"}, "invalid_token"),
    ],
)
def test_rejected_claims(claims, reason) -> None:  # noqa: ANN001
    token = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(ValueError, match=reason):
        read_access_token(token)


def test_expired_and_tampered_tokens() -> None:
    with pytest.raises(ValueError, match="expired_token"):
        read_access_token(create_access_token(uuid4(), expires_minutes=-1))
    with pytest.raises(ValueError, match="invalid_token"):
        read_access_token(create_access_token(uuid4()) + "x")
