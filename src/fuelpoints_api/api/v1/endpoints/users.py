"""Administrative user management."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.redemption import RedemptionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.redemptions import RedemptionResponse
from fuelpoints_api.schemas.users import TierResponse, UserResponse, UserUpdateRequest, UserWithPointsResponse
from fuelpoints_api.services.redemptions import RedemptionFilters, RedemptionWorkflow
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.users import UserService, UserWithTier

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = require_roles(UserRoleEnum.ADMIN)


def _with_points(row: UserWithTier) -> UserWithPointsResponse:
    return UserWithPointsResponse.model_validate(row.user).model_copy(
        update={"points": row.tier.points, "tier": row.tier.tier}
    )


@router.get("")
async def list_users(
    role: UserRoleEnum | None = Query(default=None),
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    rows = await UserService(session).list_users(role)
    return envelope([_with_points(row) for row in rows], message="Users retrieved successfully")


@router.get("/redemptions")
async def list_user_redemptions(
    user_id: UUID | None = Query(default=None, alias="userId"),
    status: RedemptionStatusEnum | None = Query(default=None),
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    redemptions = await RedemptionWorkflow(session).list_redemptions(
        RedemptionFilters(user_id=user_id, status=status)
    )
    return envelope(
        [RedemptionResponse.model_validate(item) for item in redemptions],
        message="Redemptions retrieved successfully",
    )


@router.get("/{user_id}")
async def get_user(
    user_id: UUID,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    user = await UserService(session).get_user(user_id)
    return envelope(UserResponse.model_validate(user))


@router.get("/{user_id}/tier")
async def get_user_tier(
    user_id: UUID,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await UserService(session).get_user(user_id)
    snapshot = await TierService(session).snapshot(user_id)
    return envelope(TierResponse.model_validate(snapshot))


@router.put("/{user_id}")
async def update_user(
    user_id: UUID,
    payload: UserUpdateRequest,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    user = await UserService(session).update_user(user_id, payload.model_dump(exclude_unset=True))
    await session.commit()
    return envelope(UserResponse.model_validate(user), message="User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: UUID,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await UserService(session).delete_user(user_id)
    await session.commit()
    return envelope(message="User deleted successfully")
