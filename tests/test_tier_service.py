from decimal import Decimal

import pytest

from fuelpoints_api.models.customer_tier import CustomerTier, TierEnum
from fuelpoints_api.models.transaction import FuelTransaction, TransactionStatusEnum
from fuelpoints_api.services.tiers import TierService, determine_tier


@pytest.mark.parametrize(
    ("points", "tier"),
    [
        (0, TierEnum.BRONZE),
        (1999, TierEnum.BRONZE),
        (2000, TierEnum.SILVER),
        (4999, TierEnum.SILVER),
        (5000, TierEnum.GOLD),
        (9999, TierEnum.GOLD),
        (10000, TierEnum.PLATINUM),
    ],
)
def test_tier_boundaries(points: int, tier: TierEnum) -> None:
    assert determine_tier(points) is tier


@pytest.mark.asyncio
async def test_apply_transaction_accumulates_and_promotes(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await make_user(session)
        service = TierService(session)

        first = await service.apply_transaction(customer.id, 1500)
        assert first.tier == TierEnum.BRONZE.value
        assert first.transactions == 1

        second = await service.apply_transaction(customer.id, 600)
        assert second.id == first.id
        assert second.points == 2100
        assert second.transactions == 2
        assert second.tier == TierEnum.SILVER.value


@pytest.mark.asyncio
async def test_snapshot_defaults_to_bronze(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await make_user(session)
        snapshot = await TierService(session).snapshot(customer.id)

    assert snapshot.tier == TierEnum.BRONZE.value
    assert snapshot.points == 0
    assert snapshot.last_activity is None


@pytest.mark.asyncio
async def test_debit_never_goes_negative(session_factory, make_user) -> None:
    async with session_factory() as session:
        customer = await make_user(session)
        service = TierService(session)
        await service.apply_transaction(customer.id, 2500)

        tier = await service.debit(customer.id, 4000)
        assert tier is not None
        assert tier.points == 0
        assert tier.tier == TierEnum.BRONZE.value


@pytest.mark.asyncio
async def test_backfill_rebuilds_from_completed_ledger(session_factory, make_user) -> None:
    async with session_factory() as session:
        fresh = await make_user(session)
        stale = await make_user(session)
        session.add(CustomerTier(user_id=stale.id, tier=TierEnum.BRONZE.value, points=42, transactions=9))
        session.add_all(
            [
                FuelTransaction(user_id=fresh.id, amount=Decimal("1500"), reward_points=1500),
                FuelTransaction(user_id=fresh.id, amount=Decimal("1000"), reward_points=None),
                FuelTransaction(
                    user_id=fresh.id,
                    amount=Decimal("900"),
                    reward_points=900,
                    status=TransactionStatusEnum.PENDING.value,
                ),
                FuelTransaction(user_id=stale.id, amount=Decimal("2500"), reward_points=2500),
            ]
        )
        await session.flush()

        service = TierService(session)
        report = await service.backfill()

        assert report.total_users == 2
        assert report.created == 1
        assert report.updated == 1
        assert report.errors == 0

        fresh_tier = await service.get(fresh.id)
        assert fresh_tier.points == 1510
        assert fresh_tier.transactions == 2
        assert fresh_tier.tier == TierEnum.BRONZE.value

        stale_tier = await service.get(stale.id)
        assert stale_tier.points == 2500
        assert stale_tier.transactions == 1
        assert stale_tier.tier == TierEnum.SILVER.value
