import pytest
from sqlalchemy import select

from fuelpoints_api.core.errors import ConflictError, PermissionDenied, ValidationFailed
from fuelpoints_api.models.assignment import (
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignmentStatusEnum,
    PumpAssignment,
)
from fuelpoints_api.models.notification import Notification
from fuelpoints_api.models.redemption import Redemption, RedemptionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.tiers import TierService


async def _active_rows(session, pump_id):
    stmt = select(PumpAssignment).where(
        PumpAssignment.pump_id == pump_id,
        PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
    )
    return list((await session.execute(stmt)).scalars())


@pytest.mark.asyncio
async def test_pump_has_single_active_employer(session_factory, make_user) -> None:
    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        first = await make_user(session, UserRoleEnum.EMPLOYER)
        second = await make_user(session, UserRoleEnum.EMPLOYER)
        pump = await PumpService(session).create(name="Island 1", fuel_types=["DIESEL"])
        service = AssignmentService(session)

        original = await service.assign_pump(pump_id=pump.id, employer_id=first.id, assigned_by=admin.id)
        replacement = await service.assign_pump(pump_id=pump.id, employer_id=second.id, assigned_by=admin.id)

        active = await _active_rows(session, pump.id)
        assert [row.id for row in active] == [replacement.id]
        await session.refresh(original)
        assert original.status == AssignmentStatusEnum.INACTIVE.value

        with pytest.raises(ConflictError):
            await service.assign_pump(pump_id=pump.id, employer_id=second.id, assigned_by=admin.id)

        await service.update_pump_assignment(original.id, status=AssignmentStatusEnum.ACTIVE)
        active = await _active_rows(session, pump.id)
        assert [row.employer_id for row in active] == [first.id]


@pytest.mark.asyncio
async def test_pump_assignment_requires_employer_role(session_factory, make_user) -> None:
    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        customer = await make_user(session)
        pump = await PumpService(session).create(name="Island 2", fuel_types=["LPG"])

        with pytest.raises(ValidationFailed):
            await AssignmentService(session).assign_pump(pump_id=pump.id, employer_id=customer.id, assigned_by=admin.id)


@pytest.mark.asyncio
async def test_customer_link_is_unique_while_active(session_factory, make_user) -> None:
    async with session_factory() as session:
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        customer = await make_user(session)
        service = AssignmentService(session)

        await service.assign_user(user_id=customer.id, employer_id=employer.id, assigned_by=supervisor.id)
        with pytest.raises(ConflictError):
            await service.assign_user(user_id=customer.id, employer_id=employer.id, assigned_by=supervisor.id)

        links = await service.list_user_assignments(customer.id)
        assert [link.employer_id for link in links] == [employer.id]


@pytest.mark.asyncio
async def test_gift_offer_to_customer_opens_one_pending_redemption(session_factory, make_user) -> None:
    async with session_factory() as session:
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        customer = await make_user(session)
        gift = await GiftService(session).create(
            name="Car Wash",
            description="Basic exterior wash",
            points_required=100,
            value=10,
            category="Vouchers",
            stock=3,
        )
        await TierService(session).apply_transaction(customer.id, 150)
        service = AssignmentService(session)

        outcome = await service.assign_gift(
            gift_id=gift.id,
            assigned_to_id=customer.id,
            assigned_to_role=GiftAssigneeRoleEnum.USER,
            assigned_by=supervisor.id,
        )
        assert outcome.created is True
        assert outcome.redemption_created is True
        assert outcome.assignment.status == GiftAssignmentStatusEnum.AVAILABLE.value
        assert outcome.assignment.points_available == 150

        again = await service.assign_gift(
            gift_id=gift.id,
            assigned_to_id=customer.id,
            assigned_to_role=GiftAssigneeRoleEnum.USER,
            assigned_by=supervisor.id,
        )
        assert again.created is False
        assert again.assignment.id == outcome.assignment.id

        redemptions = list(
            (await session.execute(select(Redemption).where(Redemption.user_id == customer.id))).scalars()
        )
        assert len(redemptions) == 1
        assert redemptions[0].status == RedemptionStatusEnum.PENDING.value
        assert redemptions[0].points_used == 100

        notifications = list(
            (await session.execute(select(Notification).where(Notification.user_id == customer.id))).scalars()
        )
        assert [item.title for item in notifications] == ["New Gift Assigned"]


@pytest.mark.asyncio
async def test_gift_offer_rejects_inactive_gift(session_factory, make_user) -> None:
    async with session_factory() as session:
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        gift = await GiftService(session).create(
            name="Retired Mug",
            description="No longer stocked",
            points_required=10,
            value=2,
            category="Other",
            stock=1,
            active=False,
        )

        with pytest.raises(ValidationFailed):
            await AssignmentService(session).assign_gift(
                gift_id=gift.id,
                assigned_to_id=employer.id,
                assigned_to_role=GiftAssigneeRoleEnum.EMPLOYER,
                assigned_by=supervisor.id,
            )


@pytest.mark.asyncio
async def test_employer_can_only_update_own_gift_assignment(session_factory, make_user) -> None:
    async with session_factory() as session:
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        owner = await make_user(session, UserRoleEnum.EMPLOYER)
        stranger = await make_user(session, UserRoleEnum.EMPLOYER)
        gift = await GiftService(session).create(
            name="Snack Pack",
            description="Chips and a drink",
            points_required=20,
            value=4,
            category="Food",
            stock=0,
        )
        service = AssignmentService(session)
        outcome = await service.assign_gift(
            gift_id=gift.id,
            assigned_to_id=owner.id,
            assigned_to_role=GiftAssigneeRoleEnum.EMPLOYER,
            assigned_by=supervisor.id,
        )
        assert outcome.assignment.status == GiftAssignmentStatusEnum.PENDING.value

        with pytest.raises(PermissionDenied):
            await service.set_gift_assignment_status(
                employer_id=stranger.id,
                assignment_id=outcome.assignment.id,
                status=GiftAssignmentStatusEnum.AVAILABLE,
            )

        updated = await service.set_gift_assignment_status(
            employer_id=owner.id,
            assignment_id=outcome.assignment.id,
            status=GiftAssignmentStatusEnum.AVAILABLE,
        )
        assert updated.is_available is True

        supervisor_inbox = list(
            (await session.execute(select(Notification).where(Notification.user_id == supervisor.id))).scalars()
        )
        assert [item.title for item in supervisor_inbox] == ["Gift Approved by Employer"]
