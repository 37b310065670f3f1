from decimal import Decimal
from uuid import uuid4

import pytest

from fuelpoints_api.models.assignment import AssignmentStatusEnum, GiftAssigneeRoleEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.scoping import AssignmentGraph, NodeKind
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.transactions import NewTransaction, TransactionService


async def _chain(session, make_user):
    """customer -> employer -> pump -> supervisor, with one gift offered to the customer."""

    admin = await make_user(session, UserRoleEnum.ADMIN)
    supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
    employer = await make_user(session, UserRoleEnum.EMPLOYER)
    customer = await make_user(session)
    pump = await PumpService(session).create(name="North 1", fuel_types=["PETROL"], supervisor_id=supervisor.id)
    assignments = AssignmentService(session)
    pump_assignment = await assignments.assign_pump(pump_id=pump.id, employer_id=employer.id, assigned_by=admin.id)
    await assignments.assign_user(user_id=customer.id, employer_id=employer.id, assigned_by=supervisor.id)
    gift = await GiftService(session).create(
        name="Fuel Voucher",
        description="Ten litres on the house",
        points_required=10,
        value=20,
        category="Vouchers",
        stock=4,
    )
    await TierService(session).apply_transaction(customer.id, 25)
    await assignments.assign_gift(
        gift_id=gift.id,
        assigned_to_id=customer.id,
        assigned_to_role=GiftAssigneeRoleEnum.USER,
        assigned_by=supervisor.id,
    )
    return {
        "supervisor": supervisor,
        "employer": employer,
        "customer": customer,
        "pump": pump,
        "gift": gift,
        "pump_assignment": pump_assignment,
    }


@pytest.mark.asyncio
async def test_customer_sees_full_chain(session_factory, make_user) -> None:
    async with session_factory() as session:
        chain = await _chain(session, make_user)
        graph = AssignmentGraph(session)
        customer_id = chain["customer"].id

        assert await graph.visible_employer_ids(customer_id) == {chain["employer"].id}
        assert await graph.visible_pump_ids(customer_id) == {chain["pump"].id}
        assert await graph.visible_supervisor_ids(customer_id) == {chain["supervisor"].id}
        assert await graph.visible_gift_ids(customer_id) == {chain["gift"].id}

        offers = await GiftService(session).available_for_customer(customer_id)
        assert [offer.assignment.gift_id for offer in offers] == [chain["gift"].id]
        assert offers[0].is_available is True


@pytest.mark.asyncio
async def test_broken_pump_link_hides_supervisor_and_gifts(session_factory, make_user) -> None:
    async with session_factory() as session:
        chain = await _chain(session, make_user)
        await AssignmentService(session).update_pump_assignment(
            chain["pump_assignment"].id,
            status=AssignmentStatusEnum.INACTIVE,
        )
        graph = AssignmentGraph(session)
        customer_id = chain["customer"].id

        assert await graph.visible_employer_ids(customer_id) == {chain["employer"].id}
        assert await graph.visible_pump_ids(customer_id) == set()
        assert await graph.visible_gift_ids(customer_id) == set()
        assert await GiftService(session).available_for_customer(customer_id) == []


@pytest.mark.asyncio
async def test_unassigned_supervisor_breaks_chain(session_factory, make_user) -> None:
    async with session_factory() as session:
        chain = await _chain(session, make_user)
        await PumpService(session).update(chain["pump"].id, {"supervisor_id": None})

        graph = AssignmentGraph(session)
        assert await graph.visible_supervisor_ids(chain["customer"].id) == set()
        assert await graph.supervised_employer_ids(chain["supervisor"].id) == set()


@pytest.mark.asyncio
async def test_supervisor_reaches_employers_and_customers(session_factory, make_user) -> None:
    async with session_factory() as session:
        chain = await _chain(session, make_user)
        walk_in = await make_user(session)
        await TransactionService(session).create(
            employer_id=chain["employer"].id,
            payload=NewTransaction(
                pump_id=chain["pump"].id,
                amount=Decimal("300"),
                liters=Decimal("3"),
                user_id=walk_in.id,
            ),
        )

        graph = AssignmentGraph(session)
        supervisor_id = chain["supervisor"].id
        assert await graph.supervised_employer_ids(supervisor_id) == {chain["employer"].id}
        assert await graph.supervised_user_ids(supervisor_id) == {chain["customer"].id, walk_in.id}


@pytest.mark.asyncio
async def test_unknown_edge_is_rejected(session_factory) -> None:
    async with session_factory() as session:
        graph = AssignmentGraph(session)
        with pytest.raises(ValueError):
            await graph.reachable((NodeKind.GIFT, uuid4()), (NodeKind.USER,))
