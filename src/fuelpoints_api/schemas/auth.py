from __future__ import annotations

from pydantic import Field

from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.common import CamelModel
from fuelpoints_api.schemas.users import UserResponse


class RegisterRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRoleEnum = UserRoleEnum.USER
    name: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=32)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    role: UserRoleEnum


class AuthResponse(CamelModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
