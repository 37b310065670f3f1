"""Redemption requests and their review."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.redemption import RedemptionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.redemptions import (
    RedemptionCreateRequest,
    RedemptionResponse,
    RedemptionUpdateRequest,
)
from fuelpoints_api.services.redemptions import RedemptionFilters, RedemptionWorkflow
from fuelpoints_api.services.users import UserService

router = APIRouter(prefix="/redemptions", tags=["Redemptions"])

reviewers = require_roles(UserRoleEnum.ADMIN, UserRoleEnum.SUPERVISOR)
requesters = require_roles(UserRoleEnum.USER, UserRoleEnum.ADMIN, UserRoleEnum.SUPERVISOR)


@router.get("")
async def list_redemptions(
    user_id: UUID | None = Query(default=None, alias="userId"),
    status_filter: RedemptionStatusEnum | None = Query(default=None, alias="status"),
    date_from: date | None = Query(default=None, alias="dateFrom"),
    date_to: date | None = Query(default=None, alias="dateTo"),
    context: RequestContext = Depends(reviewers),
    session: AsyncSession = Depends(get_session),
) -> dict:
    filters = RedemptionFilters(
        user_id=user_id,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
        supervisor_id=context.user_id if context.role is UserRoleEnum.SUPERVISOR else None,
    )
    redemptions = await RedemptionWorkflow(session).list_redemptions(filters)
    return envelope(
        [RedemptionResponse.model_validate(item) for item in redemptions],
        message="Redemptions retrieved successfully",
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_redemption(
    payload: RedemptionCreateRequest,
    context: RequestContext = Depends(requesters),
    session: AsyncSession = Depends(get_session),
) -> dict:
    points_used = payload.points_used
    if context.has_role(UserRoleEnum.USER):
        user_id = context.user_id
        points_used = None
    else:
        user_id = payload.user_id
        if user_id is not None:
            await UserService(session).get_with_role(user_id, UserRoleEnum.USER, label="User")
    redemption = await RedemptionWorkflow(session).create(
        gift_id=payload.gift_id,
        user_id=user_id,
        quantity=payload.quantity,
        points_used=points_used,
    )
    await session.commit()
    return envelope(RedemptionResponse.model_validate(redemption), message="Redemption request created successfully")


@router.put("/{redemption_id}")
async def update_redemption(
    redemption_id: UUID,
    payload: RedemptionUpdateRequest,
    _: RequestContext = Depends(reviewers),
    session: AsyncSession = Depends(get_session),
) -> dict:
    redemption = await RedemptionWorkflow(session).transition(redemption_id, payload.status)
    await session.commit()
    return envelope(
        RedemptionResponse.model_validate(redemption),
        message=f"Redemption {payload.status.value.lower()} successfully",
    )
