from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from fuelpoints_api.models.redemption import RedemptionStatusEnum
from fuelpoints_api.schemas.common import CamelModel, GiftSummary, UserSummary


class RedemptionCreateRequest(CamelModel):
    gift_id: UUID
    user_id: UUID | None = None
    quantity: int = Field(default=1, ge=1)
    points_used: int | None = Field(default=None, ge=0)


class RedemptionUpdateRequest(CamelModel):
    status: RedemptionStatusEnum


class RedemptionResponse(CamelModel):
    id: UUID
    user_id: UUID | None = None
    gift_id: UUID
    points_used: int
    quantity: int
    redemption_code: str | None = None
    status: str
    user: UserSummary | None = None
    gift: GiftSummary | None = None
    created_at: datetime
    updated_at: datetime
