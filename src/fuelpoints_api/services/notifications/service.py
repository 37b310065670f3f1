"""In-app notifications raised as side effects of other writes."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Iterable, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import DomainError, NotFound
from fuelpoints_api.models.notification import (
    Notification,
    NotificationCategoryEnum,
    NotificationTypeEnum,
)
from fuelpoints_api.models.user import User, UserRoleEnum


class NotificationService:
    """Creates and manages notifications addressed to a single account."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def notify(
        self,
        user_id: UUID,
        *,
        title: str,
        message: str,
        kind: NotificationTypeEnum = NotificationTypeEnum.INFO,
        category: NotificationCategoryEnum = NotificationCategoryEnum.SYSTEM,
        link: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=kind.value,
            category=category.value,
            link=link,
            metadata_json=_jsonable(metadata or {}),
        )
        self._db.add(notification)
        await self._db.flush()
        logger.info(
            "Notification created",
            user_id=str(user_id),
            category=category.value,
            notification_id=str(notification.id),
        )
        return notification

    async def notify_many(
        self,
        user_ids: Iterable[UUID],
        *,
        title: str,
        message: str,
        kind: NotificationTypeEnum = NotificationTypeEnum.INFO,
        category: NotificationCategoryEnum = NotificationCategoryEnum.SYSTEM,
        link: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        recipients = list(dict.fromkeys(user_ids))
        for user_id in recipients:
            self._db.add(
                Notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=kind.value,
                    category=category.value,
                    link=link,
                    metadata_json=_jsonable(metadata or {}),
                )
            )
        await self._db.flush()
        logger.info("Notifications created", recipients=len(recipients), category=category.value)
        return len(recipients)

    async def notify_admins(self, **kwargs: Any) -> int:
        stmt = select(User.id).where(User.role == UserRoleEnum.ADMIN.value)
        result = await self._db.execute(stmt)
        return await self.notify_many(list(result.scalars()), **kwargs)

    @asynccontextmanager
    async def best_effort(self, action: str, **context: Any) -> AsyncIterator[None]:
        """Run side effects in a savepoint; failures are logged, never raised."""

        try:
            async with self._db.begin_nested():
                yield
        except (SQLAlchemyError, DomainError):
            logger.exception("Side effect failed", action=action, **context)

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        limit: int = 50,
    ) -> tuple[list[Notification], int]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self._db.execute(stmt)
        notifications = list(result.scalars())

        count_stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
        unread_count = (await self._db.execute(count_stmt)).scalar_one()
        return notifications, int(unread_count)

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        notification.read = True
        await self._db.flush()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        stmt = (
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        result = await self._db.execute(stmt)
        logger.info("Notifications marked read", user_id=str(user_id), count=result.rowcount)
        return int(result.rowcount or 0)

    async def delete(self, user_id: UUID, notification_id: UUID) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self._db.delete(notification)
        await self._db.flush()

    async def delete_for_user(self, user_id: UUID) -> None:
        await self._db.execute(delete(Notification).where(Notification.user_id == user_id))

    async def _get_owned(self, user_id: UUID, notification_id: UUID) -> Notification:
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        result = await self._db.execute(stmt)
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFound("Notification not found")
        return notification


def _jsonable(metadata: dict[str, Any]) -> dict[str, Any]:
    return {key: str(value) if isinstance(value, UUID) else value for key, value in metadata.items()}
