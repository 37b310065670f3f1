from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from fuelpoints_api.models.gift import GiftCategoryEnum
from fuelpoints_api.schemas.common import CamelModel, UserSummary


class GiftResponse(CamelModel):
    id: UUID
    name: str
    description: str
    points_required: int
    value: int
    category: str
    stock: int
    active: bool
    created_at: datetime
    updated_at: datetime


class GiftCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=160)
    description: str = Field(..., min_length=1)
    points_required: int = Field(..., ge=0)
    value: int = Field(..., ge=0)
    category: GiftCategoryEnum
    stock: int = Field(default=0, ge=0)
    active: bool = True


class GiftUpdateRequest(CamelModel):
    name: str | None = Field(default=None, max_length=160)
    description: str | None = None
    points_required: int | None = Field(default=None, ge=0)
    value: int | None = Field(default=None, ge=0)
    category: GiftCategoryEnum | None = None
    stock: int | None = Field(default=None, ge=0)
    active: bool | None = None


class CustomerGiftOfferResponse(CamelModel):
    assignment_id: UUID
    gift: GiftResponse
    points_required: int
    points_available: int
    is_available: bool
    status: str
    assigned_by: UserSummary | None = None
