"""Password hashing and access tokens."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import bcrypt
from jose import JWTError, jwt

from schoolhub.core.config import settings

_ENCODING = "utf-8"


class InvalidTokenError(Exception):
    """Token is malformed, expired or signed with another key."""


def hash_password(plain_password: str) -> str:
    return bcrypt.hashpw(plain_password.encode(_ENCODING), bcrypt.gensalt()).decode(_ENCODING)


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode(_ENCODING), password_hash.encode(_ENCODING))
    except ValueError:
        # stored hash is not a bcrypt hash
        return False


def create_access_token(
    user_id: UUID,
    role: str,
    *,
    issued_at: Optional[datetime] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Sign a token carrying ``sub``/``user_id``, ``role``, ``iat`` and ``exp``."""
    issued_at = issued_at or datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "user_id": str(user_id),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> UUID:
    """Return the user id the token was issued for."""
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return UUID(claims.get("user_id") or claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError) as exc:
        raise InvalidTokenError(str(exc)) from exc
