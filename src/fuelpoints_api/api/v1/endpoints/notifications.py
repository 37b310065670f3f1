"""Per-account notification inbox."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, get_request_context
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.schemas.notifications import NotificationListResponse, NotificationResponse
from fuelpoints_api.services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=50, ge=1, le=200),
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items, unread = await NotificationService(session).list_for_user(
        context.user_id,
        unread_only=unread_only,
        limit=limit,
    )
    return envelope(
        NotificationListResponse(
            notifications=[NotificationResponse.model_validate(item) for item in items],
            unread_count=unread,
        )
    )


@router.put("/read-all")
async def mark_all_read(
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    count = await NotificationService(session).mark_all_read(context.user_id)
    await session.commit()
    return envelope({"updated": count}, message="All notifications marked as read")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    notification = await NotificationService(session).mark_read(context.user_id, notification_id)
    await session.commit()
    return envelope(NotificationResponse.model_validate(notification), message="Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: UUID,
    context: RequestContext = Depends(get_request_context),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await NotificationService(session).delete(context.user_id, notification_id)
    await session.commit()
    return envelope(message="Notification deleted successfully")
