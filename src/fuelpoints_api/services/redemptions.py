"""Redemption workflow: request, approval and the effects of each transition."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ConflictError, InvalidTransition, NotFound, ValidationFailed
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models.assignment import GiftAssigneeRoleEnum, GiftAssignment
from fuelpoints_api.models.gift import Gift
from fuelpoints_api.models.notification import NotificationCategoryEnum, NotificationTypeEnum
from fuelpoints_api.models.redemption import (
    OUTSTANDING_REDEMPTION_STATUSES,
    Redemption,
    RedemptionStatusEnum,
)
from fuelpoints_api.services.notifications import NotificationService
from fuelpoints_api.services.scoping import AssignmentGraph
from fuelpoints_api.services.tiers import TierService


DUPLICATE_REDEMPTION_MESSAGE = "A pending or approved redemption for this gift already exists"


def insufficient_stock_message(available: int, requested: int) -> str:
    return f"Insufficient stock. Available: {available}, Requested: {requested}"


@dataclass(slots=True)
class RedemptionFilters:
    user_id: Optional[UUID] = None
    status: Optional[RedemptionStatusEnum] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    supervisor_id: Optional[UUID] = None


class RedemptionWorkflow:
    """Applies the redemption state machine and its side effects."""

    _ALLOWED_TRANSITIONS: dict[RedemptionStatusEnum, set[RedemptionStatusEnum]] = {
        RedemptionStatusEnum.PENDING: {RedemptionStatusEnum.APPROVED, RedemptionStatusEnum.REJECTED},
        RedemptionStatusEnum.APPROVED: {RedemptionStatusEnum.COMPLETED},
        RedemptionStatusEnum.REJECTED: set(),
        RedemptionStatusEnum.COMPLETED: set(),
    }

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._tiers = TierService(db_session)
        self._notifications = NotificationService(db_session)

    @classmethod
    def can_transition(cls, current: RedemptionStatusEnum, target: RedemptionStatusEnum) -> bool:
        return target in cls._ALLOWED_TRANSITIONS.get(current, set())

    async def create(
        self,
        *,
        gift_id: UUID,
        user_id: Optional[UUID],
        quantity: int = 1,
        points_used: Optional[int] = None,
    ) -> Redemption:
        """Open a pending request; nothing is reserved until approval."""

        if quantity < 1:
            raise ValidationFailed("Quantity must be at least 1")
        gift = await self._db.get(Gift, gift_id)
        if gift is None:
            raise NotFound("Gift not found")
        if gift.stock < quantity:
            raise ValidationFailed(insufficient_stock_message(gift.stock, quantity))

        required = gift.points_required * quantity
        if points_used is not None and points_used < required:
            raise ValidationFailed(f"Points used cannot be less than the gift cost of {required}")
        if user_id is not None:
            available = await self._tiers.get_points(user_id)
            if available < required:
                raise ValidationFailed(f"Insufficient points. Required: {required}, Available: {available}")
            if await self._outstanding(user_id, gift_id) is not None:
                raise ConflictError(DUPLICATE_REDEMPTION_MESSAGE)

        redemption = Redemption(
            user_id=user_id,
            gift_id=gift_id,
            points_used=points_used or required,
            quantity=quantity,
            status=RedemptionStatusEnum.PENDING.value,
        )
        self._db.add(redemption)
        await flush_or_conflict(self._db, DUPLICATE_REDEMPTION_MESSAGE)
        logger.info(
            "Redemption requested",
            redemption_id=str(redemption.id),
            user_id=str(user_id) if user_id else None,
            gift_id=str(gift_id),
            quantity=quantity,
        )

        if user_id is not None:
            await self._notify_reviewers(redemption, gift)
        await self._db.refresh(redemption, attribute_names=["user", "gift"])
        return redemption

    async def transition(self, redemption_id: UUID, target: RedemptionStatusEnum) -> Redemption:
        """Move a redemption to ``target`` and apply its effects in one unit of work."""

        redemption = await self.get(redemption_id)
        current = RedemptionStatusEnum(redemption.status)
        if not self.can_transition(current, target):
            raise InvalidTransition("redemption", current.value, target.value)

        gift = await self._db.get(Gift, redemption.gift_id)
        if target is RedemptionStatusEnum.APPROVED:
            await self._apply_approval(redemption, gift)

        redemption.status = target.value
        await self._db.flush()
        logger.info(
            "Redemption status transitioned",
            redemption_id=str(redemption.id),
            from_status=current.value,
            to_status=target.value,
        )

        if redemption.user_id is not None and target in (RedemptionStatusEnum.APPROVED, RedemptionStatusEnum.REJECTED):
            await self._notify_requester(redemption, gift, target)
        await self._db.refresh(redemption, attribute_names=["user", "gift"])
        return redemption

    async def get(self, redemption_id: UUID) -> Redemption:
        redemption = await self._db.get(Redemption, redemption_id)
        if redemption is None:
            raise NotFound("Redemption not found")
        return redemption

    async def list_redemptions(self, filters: RedemptionFilters) -> list[Redemption]:
        stmt = select(Redemption).order_by(Redemption.created_at.desc())
        if filters.user_id is not None:
            stmt = stmt.where(Redemption.user_id == filters.user_id)
        if filters.status is not None:
            stmt = stmt.where(Redemption.status == filters.status.value)
        if filters.date_from is not None:
            stmt = stmt.where(Redemption.created_at >= _day_start(filters.date_from))
        if filters.date_to is not None:
            stmt = stmt.where(Redemption.created_at < _day_start(filters.date_to) + timedelta(days=1))
        if filters.supervisor_id is not None:
            supervised = await AssignmentGraph(self._db).supervised_user_ids(filters.supervisor_id)
            if not supervised:
                return []
            stmt = stmt.where(Redemption.user_id.in_(supervised))
        return list((await self._db.execute(stmt)).scalars())

    async def list_for_customer(self, user_id: UUID) -> list[Redemption]:
        """Redemptions for gifts the customer reached through their employers' supervisors."""

        gift_ids = await AssignmentGraph(self._db).visible_gift_ids(user_id)
        if not gift_ids:
            return []
        stmt = (
            select(Redemption)
            .where(Redemption.user_id == user_id, Redemption.gift_id.in_(gift_ids))
            .order_by(Redemption.created_at.desc())
        )
        return list((await self._db.execute(stmt)).scalars())

    async def _apply_approval(self, redemption: Redemption, gift: Gift | None) -> None:
        if gift is not None:
            if gift.stock < redemption.quantity:
                raise ValidationFailed(insufficient_stock_message(gift.stock, redemption.quantity))
            gift.stock = max(0, gift.stock - redemption.quantity)
        if redemption.user_id is not None:
            await self._tiers.debit(redemption.user_id, redemption.points_used)

    async def _outstanding(self, user_id: UUID, gift_id: UUID) -> Redemption | None:
        stmt = select(Redemption).where(
            Redemption.user_id == user_id,
            Redemption.gift_id == gift_id,
            Redemption.status.in_(OUTSTANDING_REDEMPTION_STATUSES),
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def _notify_reviewers(self, redemption: Redemption, gift: Gift) -> None:
        metadata = {"redemptionId": redemption.id, "giftId": gift.id, "userId": redemption.user_id}
        async with self._notifications.best_effort("redemption_review_notification", redemption_id=str(redemption.id)):
            stmt = (
                select(GiftAssignment.assigned_by)
                .where(
                    GiftAssignment.gift_id == gift.id,
                    GiftAssignment.assigned_to_id == redemption.user_id,
                    GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.USER.value,
                    GiftAssignment.assigned_by.is_not(None),
                )
                .order_by(GiftAssignment.assigned_at.desc())
                .limit(1)
            )
            assigner_id = (await self._db.execute(stmt)).scalar_one_or_none()
            if assigner_id is not None:
                await self._notifications.notify(
                    assigner_id,
                    title="New Redemption Request",
                    message=f'User has requested to redeem "{gift.name}". Please review and approve.',
                    category=NotificationCategoryEnum.REDEMPTION,
                    link="/supervisor/gifts?tab=redemptions",
                    metadata=metadata,
                )
            await self._notifications.notify_admins(
                title="New Redemption Request",
                message=f'A user has requested to redeem "{gift.name}". Please review.',
                category=NotificationCategoryEnum.REDEMPTION,
                link="/admin/gifts?tab=redemptions",
                metadata=metadata,
            )

    async def _notify_requester(
        self,
        redemption: Redemption,
        gift: Gift | None,
        target: RedemptionStatusEnum,
    ) -> None:
        gift_name = gift.name if gift else "your gift"
        if target is RedemptionStatusEnum.APPROVED:
            title = "Redemption Approved"
            message = f'Your redemption request for "{gift_name}" has been approved!'
            kind = NotificationTypeEnum.SUCCESS
        else:
            title = "Redemption Rejected"
            message = f'Your redemption request for "{gift_name}" was rejected.'
            kind = NotificationTypeEnum.WARNING
        async with self._notifications.best_effort("redemption_outcome_notification", redemption_id=str(redemption.id)):
            await self._notifications.notify(
                redemption.user_id,
                title=title,
                message=message,
                kind=kind,
                category=NotificationCategoryEnum.REDEMPTION,
                link="/user/rewards",
                metadata={"redemptionId": redemption.id, "giftId": redemption.gift_id},
            )


def _day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


__all__ = [
    "DUPLICATE_REDEMPTION_MESSAGE",
    "RedemptionFilters",
    "RedemptionWorkflow",
    "insufficient_stock_message",
]
