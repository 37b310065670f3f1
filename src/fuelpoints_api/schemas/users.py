from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from fuelpoints_api.schemas.common import CamelModel


class UserResponse(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    phone: str | None = None
    role: str
    created_at: datetime | None = None


class UserWithPointsResponse(UserResponse):
    points: int = 0
    tier: str = "Bronze"


class UserUpdateRequest(CamelModel):
    email: str | None = Field(default=None, max_length=255)
    name: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=32)
    password: str | None = Field(default=None, max_length=128)
    role: str | None = None


class TierResponse(CamelModel):
    user_id: UUID
    tier: str
    points: int
    transactions: int
    last_activity: datetime | None = None


class CustomerTierResponse(TierResponse):
    id: UUID
    user: UserResponse | None = None


class EmployerCustomerResponse(UserResponse):
    transaction_count: int = 0
    reward_points: int = 0
    tier: str = "Bronze"


class CustomerCreateRequest(CamelModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    name: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=32)


class CustomerUpdateRequest(CamelModel):
    email: str | None = Field(default=None, max_length=255)
    name: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=32)
    password: str | None = Field(default=None, max_length=128)
