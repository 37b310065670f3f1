import pytest
from sqlalchemy import select

from fuelpoints_api.core.errors import ConflictError, InvalidTransition, ValidationFailed
from fuelpoints_api.models.notification import Notification
from fuelpoints_api.models.redemption import RedemptionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.redemptions import RedemptionFilters, RedemptionWorkflow
from fuelpoints_api.services.tiers import TierService


async def _customer_with_points(session, make_user, points: int):
    customer = await make_user(session)
    await TierService(session).apply_transaction(customer.id, points)
    return customer


async def _gift(session, *, stock: int = 5, points_required: int = 100):
    return await GiftService(session).create(
        name=f"Gift {stock}-{points_required}",
        description="Station shop voucher",
        points_required=points_required,
        value=5,
        category="Vouchers",
        stock=stock,
    )


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (RedemptionStatusEnum.PENDING, RedemptionStatusEnum.APPROVED, True),
        (RedemptionStatusEnum.PENDING, RedemptionStatusEnum.REJECTED, True),
        (RedemptionStatusEnum.PENDING, RedemptionStatusEnum.COMPLETED, False),
        (RedemptionStatusEnum.APPROVED, RedemptionStatusEnum.COMPLETED, True),
        (RedemptionStatusEnum.APPROVED, RedemptionStatusEnum.REJECTED, False),
        (RedemptionStatusEnum.REJECTED, RedemptionStatusEnum.APPROVED, False),
        (RedemptionStatusEnum.COMPLETED, RedemptionStatusEnum.PENDING, False),
    ],
)
def test_transition_table(current, target, allowed) -> None:
    assert RedemptionWorkflow.can_transition(current, target) is allowed


@pytest.mark.asyncio
async def test_approval_debits_points_and_stock(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 250)
        gift = await _gift(session, stock=5)
        workflow = RedemptionWorkflow(session)

        redemption = await workflow.create(gift_id=gift.id, user_id=customer.id, quantity=2)
        assert redemption.status == RedemptionStatusEnum.PENDING.value
        assert redemption.points_used == 200
        assert gift.stock == 5

        approved = await workflow.transition(redemption.id, RedemptionStatusEnum.APPROVED)
        assert approved.status == RedemptionStatusEnum.APPROVED.value
        assert gift.stock == 3
        assert await TierService(session).get_points(customer.id) == 50

        completed = await workflow.transition(redemption.id, RedemptionStatusEnum.COMPLETED)
        assert completed.status == RedemptionStatusEnum.COMPLETED.value
        assert gift.stock == 3

        inbox = list(
            (await session.execute(select(Notification).where(Notification.user_id == customer.id))).scalars()
        )
        assert [item.title for item in inbox] == ["Redemption Approved"]


@pytest.mark.asyncio
async def test_rejection_leaves_balances_untouched(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 120)
        gift = await _gift(session, stock=1)
        workflow = RedemptionWorkflow(session)

        redemption = await workflow.create(gift_id=gift.id, user_id=customer.id)
        await workflow.transition(redemption.id, RedemptionStatusEnum.REJECTED)

        assert gift.stock == 1
        assert await TierService(session).get_points(customer.id) == 120

        with pytest.raises(InvalidTransition):
            await workflow.transition(redemption.id, RedemptionStatusEnum.APPROVED)


@pytest.mark.asyncio
async def test_request_requires_points_and_stock(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 50)
        gift = await _gift(session, stock=1)
        workflow = RedemptionWorkflow(session)

        with pytest.raises(ValidationFailed, match="Insufficient points"):
            await workflow.create(gift_id=gift.id, user_id=customer.id)

        with pytest.raises(ValidationFailed, match="Insufficient stock. Available: 1, Requested: 2"):
            await workflow.create(gift_id=gift.id, user_id=customer.id, quantity=2)


@pytest.mark.asyncio
async def test_only_one_outstanding_request_per_gift(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 500)
        gift = await _gift(session)
        workflow = RedemptionWorkflow(session)

        first = await workflow.create(gift_id=gift.id, user_id=customer.id)
        with pytest.raises(ConflictError):
            await workflow.create(gift_id=gift.id, user_id=customer.id)

        await workflow.transition(first.id, RedemptionStatusEnum.REJECTED)
        second = await workflow.create(gift_id=gift.id, user_id=customer.id)
        assert second.id != first.id


@pytest.mark.asyncio
async def test_approval_rechecks_stock(session_factory, make_user) -> None:
    async with session_factory() as session:
        first_customer = await _customer_with_points(session, make_user, 500)
        second_customer = await _customer_with_points(session, make_user, 500)
        gift = await _gift(session, stock=1)
        workflow = RedemptionWorkflow(session)

        first = await workflow.create(gift_id=gift.id, user_id=first_customer.id)
        second = await workflow.create(gift_id=gift.id, user_id=second_customer.id)
        await workflow.transition(first.id, RedemptionStatusEnum.APPROVED)

        with pytest.raises(ValidationFailed, match="Insufficient stock"):
            await workflow.transition(second.id, RedemptionStatusEnum.APPROVED)
        assert gift.stock == 0


@pytest.mark.asyncio
async def test_new_request_notifies_admins(session_factory, make_user) -> None:
    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        customer = await _customer_with_points(session, make_user, 500)
        gift = await _gift(session)

        await RedemptionWorkflow(session).create(gift_id=gift.id, user_id=customer.id)

        inbox = list((await session.execute(select(Notification).where(Notification.user_id == admin.id))).scalars())
        assert len(inbox) == 1
        assert inbox[0].title == "New Redemption Request"
        assert inbox[0].metadata_json["giftId"] == str(gift.id)


@pytest.mark.asyncio
async def test_list_filters_by_status(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 1000)
        workflow = RedemptionWorkflow(session)
        kept = await workflow.create(gift_id=(await _gift(session, stock=2)).id, user_id=customer.id)
        dropped = await workflow.create(gift_id=(await _gift(session, stock=3)).id, user_id=customer.id)
        await workflow.transition(dropped.id, RedemptionStatusEnum.REJECTED)

        pending = await workflow.list_redemptions(RedemptionFilters(status=RedemptionStatusEnum.PENDING))
        assert [item.id for item in pending] == [kept.id]


@pytest.mark.asyncio
async def test_points_used_below_gift_cost_is_rejected(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 600)
        gift = await _gift(session, stock=1, points_required=500)
        workflow = RedemptionWorkflow(session)

        with pytest.raises(ValidationFailed, match="Points used cannot be less than the gift cost of 500"):
            await workflow.create(gift_id=gift.id, user_id=customer.id, points_used=1)

        redemption = await workflow.create(gift_id=gift.id, user_id=customer.id, points_used=550)
        assert redemption.points_used == 550


@pytest.mark.asyncio
async def test_outstanding_index_rejects_second_request(session_factory, make_user, monkeypatch) -> None:
    async def _no_outstanding(self, user_id, gift_id):
        return None

    monkeypatch.setattr(RedemptionWorkflow, "_outstanding", _no_outstanding)

    async with session_factory() as session:
        customer = await _customer_with_points(session, make_user, 500)
        gift = await _gift(session, stock=5)
        workflow = RedemptionWorkflow(session)

        await workflow.create(gift_id=gift.id, user_id=customer.id)
        with pytest.raises(ConflictError, match="A pending or approved redemption for this gift already exists"):
            await workflow.create(gift_id=gift.id, user_id=customer.id)
