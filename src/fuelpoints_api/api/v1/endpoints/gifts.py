"""Gift catalog."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, get_request_context, require_roles
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.gifts import GiftCreateRequest, GiftResponse, GiftUpdateRequest
from fuelpoints_api.services.gifts import GiftService

router = APIRouter(prefix="/gifts", tags=["Gifts"])

catalog_editors = require_roles(UserRoleEnum.ADMIN, UserRoleEnum.SUPERVISOR)


@router.get("")
async def list_gifts(
    _: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    gifts = await GiftService(session).list_gifts()
    return envelope([GiftResponse.model_validate(gift) for gift in gifts], message="Gifts retrieved successfully")


@router.get("/{gift_id}")
async def get_gift(
    gift_id: UUID,
    _: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    gift = await GiftService(session).get(gift_id)
    return envelope(GiftResponse.model_validate(gift), message="Gift retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_gift(
    payload: GiftCreateRequest,
    _: RequestContext = Depends(catalog_editors),
    session: AsyncSession = Depends(get_session),
) -> dict:
    gift = await GiftService(session).create(**payload.model_dump())
    await session.commit()
    return envelope(GiftResponse.model_validate(gift), message="Gift created successfully")


@router.put("/{gift_id}")
async def update_gift(
    gift_id: UUID,
    payload: GiftUpdateRequest,
    _: RequestContext = Depends(catalog_editors),
    session: AsyncSession = Depends(get_session),
) -> dict:
    gift = await GiftService(session).update(gift_id, payload.model_dump(exclude_unset=True))
    await session.commit()
    return envelope(GiftResponse.model_validate(gift), message="Gift updated successfully")


@router.delete("/{gift_id}")
async def delete_gift(
    gift_id: UUID,
    _: RequestContext = Depends(catalog_editors),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await GiftService(session).delete(gift_id)
    await session.commit()
    return envelope(message="Gift deleted successfully")
