from decimal import Decimal

import pytest

from fuelpoints_api.core.errors import ConflictError, NotFound, ValidationFailed
from fuelpoints_api.models.transaction import FuelTransaction, TransactionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.station_settings import StationSettingsService
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.transactions import NewTransaction, TransactionService


async def _station(session, make_user):
    employer = await make_user(session, UserRoleEnum.EMPLOYER)
    customer = await make_user(session)
    pump = await PumpService(session).create(name="Pump A", fuel_types=["PETROL"])
    return employer, customer, pump


@pytest.mark.asyncio
async def test_completed_sale_credits_customer(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer, customer, pump = await _station(session, make_user)
        await StationSettingsService(session).update({"points_per_liter": 2, "reward_multiplier": 1})

        transaction = await TransactionService(session).create(
            employer_id=employer.id,
            payload=NewTransaction(
                pump_id=pump.id,
                amount=Decimal("2100"),
                liters=Decimal("20"),
                user_id=customer.id,
                invoice_number="I-01",
            ),
        )

        assert transaction.reward_points == 40
        assert transaction.employer_id == employer.id
        assert transaction.description == "Fuel sale - I-01"
        assert transaction.pump.name == "Pump A"
        assert await TierService(session).get_points(customer.id) == 40


@pytest.mark.asyncio
async def test_pending_sale_does_not_touch_tier(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer, customer, pump = await _station(session, make_user)

        transaction = await TransactionService(session).create(
            employer_id=employer.id,
            payload=NewTransaction(
                pump_id=pump.id,
                amount=Decimal("500"),
                liters=Decimal("5"),
                user_id=customer.id,
                status=TransactionStatusEnum.PENDING,
            ),
        )

        assert transaction.reward_points == 5
        assert await TierService(session).get(customer.id) is None


@pytest.mark.asyncio
async def test_duplicate_invoice_is_rejected(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer, _, pump = await _station(session, make_user)
        service = TransactionService(session)
        payload = NewTransaction(pump_id=pump.id, amount=Decimal("100"), invoice_number="I-07")
        await service.create(employer_id=employer.id, payload=payload)

        with pytest.raises(ConflictError):
            await service.create(employer_id=employer.id, payload=payload)


@pytest.mark.asyncio
async def test_create_validates_inputs(session_factory, make_user) -> None:
    async with session_factory() as session:
        employer, _, pump = await _station(session, make_user)
        service = TransactionService(session)

        with pytest.raises(ValidationFailed):
            await service.create(employer_id=employer.id, payload=NewTransaction(pump_id=pump.id, amount=Decimal("0")))

        with pytest.raises(ValidationFailed):
            await service.create(
                employer_id=employer.id,
                payload=NewTransaction(pump_id=pump.id, amount=Decimal("10"), user_id=employer.id),
            )

        with pytest.raises(NotFound):
            await service.create(
                employer_id=employer.id,
                payload=NewTransaction(pump_id=employer.id, amount=Decimal("10")),
            )


@pytest.mark.asyncio
async def test_next_invoice_number_follows_highest(session_factory) -> None:
    async with session_factory() as session:
        service = TransactionService(session)
        assert await service.next_invoice_number() == "I-01"

        session.add_all(
            [
                FuelTransaction(amount=Decimal("10"), invoice_number="I-02"),
                FuelTransaction(amount=Decimal("10"), invoice_number="I-11"),
                FuelTransaction(amount=Decimal("10"), invoice_number="MANUAL-99"),
            ]
        )
        await session.flush()

        assert await service.next_invoice_number() == "I-12"


@pytest.mark.asyncio
async def test_stats_sum_completed_revenue(session_factory) -> None:
    async with session_factory() as session:
        session.add_all(
            [
                FuelTransaction(amount=Decimal("150.50")),
                FuelTransaction(amount=Decimal("49.50")),
                FuelTransaction(amount=Decimal("999"), status=TransactionStatusEnum.PENDING.value),
                FuelTransaction(amount=Decimal("5"), status=TransactionStatusEnum.CANCELLED.value),
            ]
        )
        await session.flush()

        stats = await TransactionService(session).stats()

    assert stats["total_revenue"] == Decimal("200")
    assert stats["completed"] == 2
    assert stats["pending"] == 1
    assert stats["total"] == 4
