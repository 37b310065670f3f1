"""Principal resolution for authenticated routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable
from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from fuelpoints_api.core.errors import AuthenticationFailed, PermissionDenied
from fuelpoints_api.core.security import decode_access_token
from fuelpoints_api.core.settings import settings
from fuelpoints_api.models.user import UserRoleEnum


oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/login", auto_error=False)


@dataclass(frozen=True, slots=True)
class RequestContext:
    user_id: UUID
    role: UserRoleEnum
    email: str

    def has_role(self, *roles: UserRoleEnum) -> bool:
        return self.role in roles


async def get_request_context(token: str | None = Depends(oauth2_scheme)) -> RequestContext:
    if not token:
        raise AuthenticationFailed("Not authenticated")
    claims = decode_access_token(token)
    try:
        return RequestContext(
            user_id=UUID(str(claims["sub"])),
            role=UserRoleEnum(claims["role"]),
            email=str(claims.get("email") or ""),
        )
    except ValueError as error:
        raise AuthenticationFailed("Could not validate credentials") from error


def require_roles(*roles: UserRoleEnum) -> Callable[..., Awaitable[RequestContext]]:
    """Dependency factory admitting only the given roles."""

    allowed = frozenset(roles)

    async def _dependency(context: RequestContext = Depends(get_request_context)) -> RequestContext:
        if context.role not in allowed:
            raise PermissionDenied("You do not have permission to perform this action")
        return context

    return _dependency


__all__ = ["RequestContext", "get_request_context", "oauth2_scheme", "require_roles"]
