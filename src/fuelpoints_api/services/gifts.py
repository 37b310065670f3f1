"""Gift catalog."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ConflictError, NotFound, ValidationFailed
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models.assignment import (
    OUTSTANDING_GIFT_ASSIGNMENT_STATUSES,
    GiftAssigneeRoleEnum,
    GiftAssignment,
)
from fuelpoints_api.models.gift import Gift, GiftCategoryEnum
from fuelpoints_api.models.redemption import OUTSTANDING_REDEMPTION_STATUSES, Redemption
from fuelpoints_api.services.scoping import AssignmentGraph
from fuelpoints_api.services.tiers import TierService


DUPLICATE_GIFT_MESSAGE = "Gift with this name already exists"

_INTEGER_FIELDS = ("points_required", "value", "stock")


def parse_category(value: str | GiftCategoryEnum) -> str:
    try:
        return GiftCategoryEnum(value).value
    except ValueError as exc:
        raise ValidationFailed(f"Invalid gift category: {value}") from exc


def _non_negative(field: str, value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationFailed(f"{field} must be a whole number") from exc
    if number < 0:
        raise ValidationFailed(f"{field} cannot be negative")
    return number


@dataclass(slots=True)
class CustomerGiftOffer:
    assignment: GiftAssignment
    points_available: int

    @property
    def is_available(self) -> bool:
        return self.points_available >= self.assignment.points_required


class GiftService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def list_gifts(self, *, active_only: bool = False) -> list[Gift]:
        stmt = select(Gift).order_by(Gift.created_at.desc())
        if active_only:
            stmt = stmt.where(Gift.active.is_(True))
        return list((await self._db.execute(stmt)).scalars())

    async def get(self, gift_id: UUID) -> Gift:
        gift = await self._db.get(Gift, gift_id)
        if gift is None:
            raise NotFound("Gift not found")
        return gift

    async def create(
        self,
        *,
        name: str,
        description: str,
        points_required: int,
        value: int,
        category: str | GiftCategoryEnum,
        stock: int = 0,
        active: bool = True,
    ) -> Gift:
        cleaned = (name or "").strip()
        if not cleaned or not (description or "").strip():
            raise ValidationFailed("Name, description, pointsRequired, value, and category are required")
        if await self._find_by_name(cleaned) is not None:
            raise ConflictError(DUPLICATE_GIFT_MESSAGE)

        gift = Gift(
            name=cleaned,
            description=description.strip(),
            points_required=_non_negative("pointsRequired", points_required),
            value=_non_negative("value", value),
            category=parse_category(category),
            stock=_non_negative("stock", stock),
            active=bool(active),
        )
        self._db.add(gift)
        await flush_or_conflict(self._db, DUPLICATE_GIFT_MESSAGE)
        logger.info("Gift created", gift_id=str(gift.id), name=gift.name, stock=gift.stock)
        return gift

    async def update(self, gift_id: UUID, changes: dict[str, Any]) -> Gift:
        gift = await self.get(gift_id)
        if changes.get("name") is not None:
            cleaned = changes["name"].strip()
            if not cleaned:
                raise ValidationFailed("Gift name is required")
            clash = await self._find_by_name(cleaned)
            if clash is not None and clash.id != gift.id:
                raise ConflictError(DUPLICATE_GIFT_MESSAGE)
            gift.name = cleaned
        if changes.get("description") is not None:
            gift.description = changes["description"].strip()
        for field in _INTEGER_FIELDS:
            if changes.get(field) is not None:
                setattr(gift, field, _non_negative(field, changes[field]))
        if changes.get("category") is not None:
            gift.category = parse_category(changes["category"])
        if changes.get("active") is not None:
            gift.active = bool(changes["active"])

        await flush_or_conflict(self._db, DUPLICATE_GIFT_MESSAGE)
        logger.info("Gift updated", gift_id=str(gift.id))
        return gift

    async def delete(self, gift_id: UUID) -> None:
        """Remove a gift with its assignments and any redemption still in flight."""

        gift = await self.get(gift_id)
        await self._db.execute(delete(GiftAssignment).where(GiftAssignment.gift_id == gift_id))
        await self._db.execute(
            delete(Redemption).where(
                Redemption.gift_id == gift_id,
                Redemption.status.in_(OUTSTANDING_REDEMPTION_STATUSES),
            )
        )
        await self._db.delete(gift)
        await self._db.flush()
        logger.info("Gift deleted", gift_id=str(gift_id))

    async def available_for_customer(self, user_id: UUID) -> list[CustomerGiftOffer]:
        """Outstanding offers to a customer from supervisors reachable through their employers."""

        supervisor_ids = await AssignmentGraph(self._db).visible_supervisor_ids(user_id)
        if not supervisor_ids:
            return []

        stmt = (
            select(GiftAssignment)
            .join(Gift, Gift.id == GiftAssignment.gift_id)
            .where(
                GiftAssignment.assigned_to_id == user_id,
                GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.USER.value,
                GiftAssignment.assigned_by.in_(supervisor_ids),
                GiftAssignment.status.in_(OUTSTANDING_GIFT_ASSIGNMENT_STATUSES),
                Gift.active.is_(True),
                Gift.stock > 0,
            )
            .order_by(GiftAssignment.assigned_at.desc())
        )
        points = await TierService(self._db).get_points(user_id)
        return [
            CustomerGiftOffer(assignment=assignment, points_available=points)
            for assignment in (await self._db.execute(stmt)).scalars()
        ]

    async def _find_by_name(self, name: str) -> Optional[Gift]:
        result = await self._db.execute(select(Gift).where(Gift.name == name))
        return result.scalar_one_or_none()


__all__ = ["CustomerGiftOffer", "DUPLICATE_GIFT_MESSAGE", "GiftService", "parse_category"]
