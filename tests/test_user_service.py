from decimal import Decimal

import pytest
from sqlalchemy import func, select

from fuelpoints_api.core.errors import AuthenticationFailed, ConflictError, PermissionDenied, ValidationFailed
from fuelpoints_api.models.assignment import UserAssignment
from fuelpoints_api.models.customer_tier import CustomerTier
from fuelpoints_api.models.notification import Notification
from fuelpoints_api.models.redemption import Redemption
from fuelpoints_api.models.transaction import FuelTransaction
from fuelpoints_api.models.user import User, UserRoleEnum
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.notifications import NotificationService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.users import UserService


@pytest.mark.asyncio
async def test_same_email_may_hold_several_roles(session_factory) -> None:
    async with session_factory() as session:
        service = UserService(session)
        customer = await service.register(email="Driver@Example.com", password="pw-1", role="user")
        employer = await service.register(email="driver@example.com", password="pw-2", role="employer")

        assert customer.email == "driver@example.com"
        assert customer.id != employer.id

        with pytest.raises(ConflictError):
            await service.register(email="driver@example.com", password="pw-3", role="user")


@pytest.mark.asyncio
async def test_register_validates_email_and_role(session_factory) -> None:
    async with session_factory() as session:
        service = UserService(session)
        with pytest.raises(ValidationFailed, match="valid email"):
            await service.register(email="not-an-email", password="pw", role="user")
        with pytest.raises(ValidationFailed, match="Invalid role"):
            await service.register(email="ok@example.com", password="pw", role="cashier")


@pytest.mark.asyncio
async def test_authenticate_is_scoped_to_role(session_factory) -> None:
    async with session_factory() as session:
        service = UserService(session)
        await service.register(email="ops@example.com", password="s3cret", role="supervisor")

        user = await service.authenticate(email="ops@example.com", password="s3cret", role="supervisor")
        assert user.role == UserRoleEnum.SUPERVISOR.value

        with pytest.raises(AuthenticationFailed):
            await service.authenticate(email="ops@example.com", password="s3cret", role="admin")
        with pytest.raises(AuthenticationFailed):
            await service.authenticate(email="ops@example.com", password="wrong", role="supervisor")


@pytest.mark.asyncio
async def test_role_cannot_change_on_update(session_factory, make_user) -> None:
    async with session_factory() as session:
        user = await make_user(session)
        with pytest.raises(ValidationFailed, match="Role cannot be changed"):
            await UserService(session).update_user(user.id, {"role": "admin"})


@pytest.mark.asyncio
async def test_delete_removes_dependent_rows(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        customer = await make_user(session)
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        pump = await PumpService(session).create(name="South 4", fuel_types=["CNG"], supervisor_id=supervisor.id)
        session.add(UserAssignment(user_id=customer.id, employer_id=employer.id))
        session.add(FuelTransaction(user_id=customer.id, employer_id=employer.id, amount=Decimal("120")))
        await TierService(session).apply_transaction(customer.id, 1)
        await NotificationService(session).notify(customer.id, title="Hello", message="Welcome")
        gift = await GiftService(session).create(
            name="Tyre Check",
            description="Free pressure check",
            points_required=1,
            value=1,
            category="Other",
            stock=3,
        )
        session.add(Redemption(user_id=customer.id, gift_id=gift.id, points_used=1))
        await session.flush()

        service = UserService(session)
        await service.delete_user(customer.id)
        await service.delete_user(supervisor.id)

        for model, column in (
            (UserAssignment, UserAssignment.user_id),
            (FuelTransaction, FuelTransaction.user_id),
            (CustomerTier, CustomerTier.user_id),
            (Notification, Notification.user_id),
            (Redemption, Redemption.user_id),
        ):
            stmt = select(func.count()).select_from(model).where(column == customer.id)
            assert (await session.execute(stmt)).scalar_one() == 0, model.__name__

        assert await session.get(User, customer.id) is None
        await session.refresh(pump)
        assert pump.supervisor_id is None


@pytest.mark.asyncio
async def test_employer_manages_only_linked_customers(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        service = UserService(session)

        result = await service.link_customer_to_employer(
            employer_id=employer.id,
            email="walkin@example.com",
            password="pw",
            name="Walk In",
        )
        assert result.created_user is True
        assert result.created_link is True

        again = await service.link_customer_to_employer(
            employer_id=employer.id,
            email="walkin@example.com",
            password="pw",
        )
        assert again.created_user is False
        assert again.created_link is False

        assert (await service.get_employer_customer(employer.id, result.user.id)).id == result.user.id

        other_customer = await make_user(session)
        with pytest.raises(PermissionDenied):
            await service.get_employer_customer(employer.id, other_customer.id)

        customers = await service.list_employer_customers(employer.id)
        assert [row.user.email for row in customers] == ["walkin@example.com"]
        assert customers[0].reward_points == 0
