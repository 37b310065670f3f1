"""Pump, customer and gift assignment chain."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ConflictError, NotFound, PermissionDenied, ValidationFailed
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models.assignment import (
    OUTSTANDING_GIFT_ASSIGNMENT_STATUSES,
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignment,
    GiftAssignmentStatusEnum,
    PumpAssignment,
    UserAssignment,
)
from fuelpoints_api.models.gift import Gift
from fuelpoints_api.models.notification import NotificationCategoryEnum, NotificationTypeEnum
from fuelpoints_api.models.pump import Pump
from fuelpoints_api.models.redemption import (
    OUTSTANDING_REDEMPTION_STATUSES,
    Redemption,
    RedemptionStatusEnum,
)
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.notifications import NotificationService
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.users import UserService


PUMP_ALREADY_ASSIGNED = "This pump is already assigned to this employer"
USER_ALREADY_ASSIGNED = "User is already assigned to this employer"
GIFT_ALREADY_ASSIGNED = "Gift is already assigned to this recipient"

_GIFT_RELATIONS = ["gift", "assignee", "assigner"]
_PUMP_RELATIONS = ["pump", "employer", "assigner"]
_USER_RELATIONS = ["user", "employer", "assigner"]


@dataclass(slots=True)
class GiftAssignmentOutcome:
    assignment: GiftAssignment
    created: bool
    redemption_created: bool = False


class AssignmentService:
    """Maintains the single-active assignment edges between roles."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._users = UserService(db_session)
        self._notifications = NotificationService(db_session)

    # Pump -> employer

    async def assign_pump(self, *, pump_id: UUID, employer_id: UUID, assigned_by: UUID) -> PumpAssignment:
        """Give a pump to an employer, retiring any other active owner."""

        pump = await self._db.get(Pump, pump_id)
        if pump is None:
            raise NotFound("Pump not found")
        await self._users.get_with_role(employer_id, UserRoleEnum.EMPLOYER, label="Employer")

        active_stmt = select(PumpAssignment).where(
            PumpAssignment.pump_id == pump_id,
            PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        active = list((await self._db.execute(active_stmt)).scalars())
        if any(row.employer_id == employer_id for row in active):
            raise ConflictError(PUMP_ALREADY_ASSIGNED)
        for row in active:
            row.status = AssignmentStatusEnum.INACTIVE.value
        await self._db.flush()

        assignment = PumpAssignment(
            pump_id=pump_id,
            employer_id=employer_id,
            assigned_by=assigned_by,
            status=AssignmentStatusEnum.ACTIVE.value,
        )
        self._db.add(assignment)
        await flush_or_conflict(self._db, PUMP_ALREADY_ASSIGNED)
        await self._db.refresh(assignment, attribute_names=_PUMP_RELATIONS)
        logger.info(
            "Pump assigned",
            pump_id=str(pump_id),
            employer_id=str(employer_id),
            replaced=[str(row.employer_id) for row in active],
        )
        return assignment

    async def list_pump_assignments(self, status: Optional[AssignmentStatusEnum] = None) -> list[PumpAssignment]:
        stmt = select(PumpAssignment).order_by(PumpAssignment.assigned_at.desc())
        if status is not None:
            stmt = stmt.where(PumpAssignment.status == status.value)
        return list((await self._db.execute(stmt)).scalars())

    async def update_pump_assignment(
        self,
        assignment_id: UUID,
        *,
        status: Optional[AssignmentStatusEnum] = None,
        employer_id: Optional[UUID] = None,
    ) -> PumpAssignment:
        assignment = await self._get_pump_assignment(assignment_id)
        if employer_id is not None and employer_id != assignment.employer_id:
            await self._users.get_with_role(employer_id, UserRoleEnum.EMPLOYER, label="Employer")
            assignment.employer_id = employer_id
        if status is not None:
            if status is AssignmentStatusEnum.ACTIVE and assignment.status != status.value:
                await self._db.execute(
                    update(PumpAssignment)
                    .where(
                        PumpAssignment.pump_id == assignment.pump_id,
                        PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
                        PumpAssignment.id != assignment.id,
                    )
                    .values(status=AssignmentStatusEnum.INACTIVE.value)
                )
            assignment.status = status.value
        await flush_or_conflict(self._db, PUMP_ALREADY_ASSIGNED)
        await self._db.refresh(assignment, attribute_names=_PUMP_RELATIONS)
        logger.info("Pump assignment updated", assignment_id=str(assignment_id), status=assignment.status)
        return assignment

    async def delete_pump_assignment(self, assignment_id: UUID) -> None:
        assignment = await self._get_pump_assignment(assignment_id)
        await self._db.delete(assignment)
        await self._db.flush()
        logger.info("Pump assignment deleted", assignment_id=str(assignment_id))

    async def _get_pump_assignment(self, assignment_id: UUID) -> PumpAssignment:
        assignment = await self._db.get(PumpAssignment, assignment_id)
        if assignment is None:
            raise NotFound("Assignment not found")
        return assignment

    # Customer -> employer

    async def assign_user(self, *, user_id: UUID, employer_id: UUID, assigned_by: UUID) -> UserAssignment:
        await self._users.get_with_role(user_id, UserRoleEnum.USER, label="User")
        await self._users.get_with_role(employer_id, UserRoleEnum.EMPLOYER, label="Employer")

        existing_stmt = select(UserAssignment.id).where(
            UserAssignment.user_id == user_id,
            UserAssignment.employer_id == employer_id,
            UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        if (await self._db.execute(existing_stmt)).first() is not None:
            raise ConflictError(USER_ALREADY_ASSIGNED)

        assignment = UserAssignment(
            user_id=user_id,
            employer_id=employer_id,
            assigned_by=assigned_by,
            status=AssignmentStatusEnum.ACTIVE.value,
        )
        self._db.add(assignment)
        await flush_or_conflict(self._db, USER_ALREADY_ASSIGNED)
        await self._db.refresh(assignment, attribute_names=_USER_RELATIONS)
        logger.info("User assigned to employer", user_id=str(user_id), employer_id=str(employer_id))
        return assignment

    async def list_user_assignments(self, user_id: UUID) -> list[UserAssignment]:
        stmt = (
            select(UserAssignment)
            .where(
                UserAssignment.user_id == user_id,
                UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
            )
            .order_by(UserAssignment.assigned_at.desc())
        )
        return list((await self._db.execute(stmt)).scalars())

    # Gift -> employer | customer

    async def assign_gift(
        self,
        *,
        gift_id: UUID,
        assigned_to_id: UUID,
        assigned_to_role: GiftAssigneeRoleEnum,
        assigned_by: UUID,
        points_available: int = 0,
    ) -> GiftAssignmentOutcome:
        """Offer a gift to an employer or customer.

        An outstanding assignment for the same recipient is refreshed in place.
        Customers also receive a pending redemption so they can claim the gift.
        """

        gift = await self._db.get(Gift, gift_id)
        if gift is None:
            raise NotFound("Gift not found")
        if not gift.active:
            raise ValidationFailed("Gift is not active")
        await self._users.get_with_role(
            assigned_to_id,
            UserRoleEnum(assigned_to_role.value),
            label="User",
        )

        if assigned_to_role is GiftAssigneeRoleEnum.USER:
            points = await TierService(self._db).get_points(assigned_to_id)
            is_available = points >= gift.points_required and gift.stock > 0
        else:
            points = points_available
            is_available = gift.stock > 0
        status = GiftAssignmentStatusEnum.AVAILABLE if is_available else GiftAssignmentStatusEnum.PENDING

        existing = await self._outstanding_gift_assignment(gift_id, assigned_to_id, assigned_to_role)
        if existing is not None:
            existing.points_available = points
            existing.points_required = gift.points_required
            existing.is_available = is_available
            existing.status = status.value
            existing.assigned_by = assigned_by
            await self._db.flush()
            await self._db.refresh(existing, attribute_names=_GIFT_RELATIONS)
            logger.info(
                "Gift assignment refreshed",
                assignment_id=str(existing.id),
                gift_id=str(gift_id),
                status=existing.status,
            )
            return GiftAssignmentOutcome(assignment=existing, created=False)

        assignment = GiftAssignment(
            gift_id=gift_id,
            assigned_to_id=assigned_to_id,
            assigned_to_role=assigned_to_role.value,
            assigned_by=assigned_by,
            points_available=points,
            points_required=gift.points_required,
            is_available=is_available,
            status=status.value,
        )
        self._db.add(assignment)
        await flush_or_conflict(self._db, GIFT_ALREADY_ASSIGNED)
        logger.info(
            "Gift assigned",
            assignment_id=str(assignment.id),
            gift_id=str(gift_id),
            assigned_to=str(assigned_to_id),
            role=assigned_to_role.value,
            status=status.value,
        )

        availability_note = "It is now available." if is_available else "Please approve it to make it available."
        async with self._notifications.best_effort("gift_assigned_notification", assignment_id=str(assignment.id)):
            await self._notifications.notify(
                assigned_to_id,
                title="New Gift Assigned",
                message=f'You have been assigned a new gift: "{gift.name}". {availability_note}',
                kind=NotificationTypeEnum.SUCCESS if is_available else NotificationTypeEnum.INFO,
                category=NotificationCategoryEnum.GIFT,
                link="/employer/gifts" if assigned_to_role is GiftAssigneeRoleEnum.EMPLOYER else "/user/rewards",
                metadata={"assignmentId": assignment.id, "giftId": gift.id},
            )

        redemption_created = False
        if assigned_to_role is GiftAssigneeRoleEnum.USER:
            redemption_created = await self._open_redemption_for(assigned_to_id, gift)

        await self._db.refresh(assignment, attribute_names=_GIFT_RELATIONS)
        return GiftAssignmentOutcome(assignment=assignment, created=True, redemption_created=redemption_created)

    async def list_gift_assignments(self, assigned_by: UUID) -> list[GiftAssignment]:
        stmt = (
            select(GiftAssignment)
            .where(GiftAssignment.assigned_by == assigned_by)
            .order_by(GiftAssignment.assigned_at.desc())
        )
        return list((await self._db.execute(stmt)).scalars())

    async def employer_gift_assignments(self, employer_id: UUID) -> list[GiftAssignment]:
        stmt = (
            select(GiftAssignment)
            .where(
                GiftAssignment.assigned_to_id == employer_id,
                GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.EMPLOYER.value,
            )
            .order_by(GiftAssignment.assigned_at.desc())
        )
        return list((await self._db.execute(stmt)).scalars())

    async def set_gift_assignment_status(
        self,
        *,
        employer_id: UUID,
        assignment_id: UUID,
        status: GiftAssignmentStatusEnum,
    ) -> GiftAssignment:
        assignment = await self._owned_employer_assignment(employer_id, assignment_id)
        assignment.status = status.value
        if status is GiftAssignmentStatusEnum.AVAILABLE:
            assignment.is_available = True
        elif status is GiftAssignmentStatusEnum.PENDING:
            assignment.is_available = False
        await flush_or_conflict(self._db, GIFT_ALREADY_ASSIGNED)
        logger.info("Gift assignment status updated", assignment_id=str(assignment_id), status=status.value)

        if status is GiftAssignmentStatusEnum.AVAILABLE and assignment.assigned_by is not None:
            gift = await self._db.get(Gift, assignment.gift_id)
            async with self._notifications.best_effort("gift_approved_notification", assignment_id=str(assignment_id)):
                await self._notifications.notify(
                    assignment.assigned_by,
                    title="Gift Approved by Employer",
                    message=f'The gift "{gift.name}" has been approved and is now available for redemption.',
                    kind=NotificationTypeEnum.SUCCESS,
                    category=NotificationCategoryEnum.GIFT,
                    link="/supervisor/gifts",
                    metadata={"assignmentId": assignment.id, "giftId": assignment.gift_id},
                )
        await self._db.refresh(assignment, attribute_names=_GIFT_RELATIONS)
        return assignment

    async def set_gift_assignment_availability(
        self,
        *,
        employer_id: UUID,
        assignment_id: UUID,
        is_available: bool,
    ) -> GiftAssignment:
        assignment = await self._owned_employer_assignment(employer_id, assignment_id)
        assignment.is_available = is_available
        assignment.status = (
            GiftAssignmentStatusEnum.AVAILABLE.value if is_available else GiftAssignmentStatusEnum.PENDING.value
        )
        await flush_or_conflict(self._db, GIFT_ALREADY_ASSIGNED)
        logger.info("Gift availability updated", assignment_id=str(assignment_id), is_available=is_available)
        await self._db.refresh(assignment, attribute_names=_GIFT_RELATIONS)
        return assignment

    async def _owned_employer_assignment(self, employer_id: UUID, assignment_id: UUID) -> GiftAssignment:
        assignment = await self._db.get(GiftAssignment, assignment_id)
        if assignment is None:
            raise NotFound("Gift assignment not found")
        if (
            assignment.assigned_to_id != employer_id
            or assignment.assigned_to_role != GiftAssigneeRoleEnum.EMPLOYER.value
        ):
            raise PermissionDenied("You do not have permission to update this gift assignment")
        return assignment

    async def _outstanding_gift_assignment(
        self,
        gift_id: UUID,
        assigned_to_id: UUID,
        assigned_to_role: GiftAssigneeRoleEnum,
    ) -> GiftAssignment | None:
        stmt = select(GiftAssignment).where(
            GiftAssignment.gift_id == gift_id,
            GiftAssignment.assigned_to_id == assigned_to_id,
            GiftAssignment.assigned_to_role == assigned_to_role.value,
            GiftAssignment.status.in_(OUTSTANDING_GIFT_ASSIGNMENT_STATUSES),
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def _open_redemption_for(self, user_id: UUID, gift: Gift) -> bool:
        stmt = select(Redemption.id).where(
            Redemption.user_id == user_id,
            Redemption.gift_id == gift.id,
            Redemption.status.in_(OUTSTANDING_REDEMPTION_STATUSES),
        )
        if (await self._db.execute(stmt)).first() is not None:
            return False

        created = False
        async with self._notifications.best_effort("auto_redemption", user_id=str(user_id), gift_id=str(gift.id)):
            self._db.add(
                Redemption(
                    user_id=user_id,
                    gift_id=gift.id,
                    points_used=gift.points_required or 0,
                    quantity=1,
                    status=RedemptionStatusEnum.PENDING.value,
                )
            )
            await self._db.flush()
            created = True
            logger.info("Pending redemption opened for assigned gift", user_id=str(user_id), gift_id=str(gift.id))
        return created


__all__ = ["AssignmentService", "GiftAssignmentOutcome"]
