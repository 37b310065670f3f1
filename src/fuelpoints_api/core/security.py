"""Password hashing and access token helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from fuelpoints_api.core.errors import AuthenticationFailed
from fuelpoints_api.core.settings import settings


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(
    *,
    user_id: UUID,
    role: str,
    email: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "email": email,
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """Return verified claims or raise ``AuthenticationFailed``."""

    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as error:
        raise AuthenticationFailed("Could not validate credentials") from error
    if not claims.get("sub") or not claims.get("role"):
        raise AuthenticationFailed("Could not validate credentials")
    return claims


__all__ = [
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "pwd_context",
    "verify_password",
]
