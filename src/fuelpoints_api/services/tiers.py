"""Customer tier aggregation over the transaction ledger."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.models._mixins import utcnow
from fuelpoints_api.models.customer_tier import CustomerTier, TierEnum
from fuelpoints_api.models.transaction import FuelTransaction, TransactionStatusEnum
from fuelpoints_api.services.rewards import effective_reward_points


TIER_THRESHOLDS: tuple[tuple[int, TierEnum], ...] = (
    (10000, TierEnum.PLATINUM),
    (5000, TierEnum.GOLD),
    (2000, TierEnum.SILVER),
)


def determine_tier(points: int) -> TierEnum:
    for threshold, tier in TIER_THRESHOLDS:
        if points >= threshold:
            return tier
    return TierEnum.BRONZE


@dataclass(slots=True)
class TierSnapshot:
    user_id: UUID
    tier: str
    points: int
    transactions: int
    last_activity: datetime | None


@dataclass(slots=True)
class BackfillReport:
    total_users: int = 0
    created: int = 0
    updated: int = 0
    errors: int = 0


class TierService:
    """Maintains the per-customer points cache."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def get(self, user_id: UUID) -> CustomerTier | None:
        stmt = select(CustomerTier).where(CustomerTier.user_id == user_id)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_points(self, user_id: UUID) -> int:
        tier = await self.get(user_id)
        return tier.points if tier else 0

    async def snapshot(self, user_id: UUID) -> TierSnapshot:
        """Tier for a user, Bronze with no points when nothing was recorded yet."""

        tier = await self.get(user_id)
        if tier is None:
            return TierSnapshot(
                user_id=user_id,
                tier=TierEnum.BRONZE.value,
                points=0,
                transactions=0,
                last_activity=None,
            )
        return TierSnapshot(
            user_id=user_id,
            tier=tier.tier,
            points=tier.points,
            transactions=tier.transactions,
            last_activity=tier.last_activity,
        )

    async def ensure_tier(self, user_id: UUID) -> CustomerTier:
        existing = await self.get(user_id)
        if existing is not None:
            return existing

        tier = CustomerTier(user_id=user_id, tier=TierEnum.BRONZE.value, points=0, transactions=0)
        try:
            async with self._db.begin_nested():
                self._db.add(tier)
        except IntegrityError:
            logger.warning("Detected race when creating customer tier", user_id=str(user_id))
            existing = await self.get(user_id)
            if existing is None:
                raise
            return existing
        logger.info("Created customer tier", user_id=str(user_id))
        return tier

    async def apply_transaction(self, user_id: UUID, points: int) -> CustomerTier:
        """Add a completed sale to the customer's running totals."""

        tier = await self.ensure_tier(user_id)
        previous = tier.tier
        tier.points = (tier.points or 0) + points
        tier.transactions = (tier.transactions or 0) + 1
        tier.last_activity = utcnow()
        tier.tier = determine_tier(tier.points).value
        await self._db.flush()
        logger.info(
            "Customer tier updated",
            user_id=str(user_id),
            points_added=points,
            points=tier.points,
            tier=tier.tier,
            promoted=previous != tier.tier,
        )
        return tier

    async def debit(self, user_id: UUID, points: int) -> CustomerTier | None:
        """Remove redeemed points; the balance never drops below zero."""

        tier = await self.get(user_id)
        if tier is None:
            return None
        tier.points = max(0, (tier.points or 0) - points)
        tier.tier = determine_tier(tier.points).value
        await self._db.flush()
        logger.info("Customer points debited", user_id=str(user_id), points_debited=points, points=tier.points)
        return tier

    async def list_tiers(self) -> list[CustomerTier]:
        stmt = select(CustomerTier).order_by(CustomerTier.points.desc(), CustomerTier.created_at.asc())
        result = await self._db.execute(stmt)
        return list(result.scalars())

    async def backfill(self) -> BackfillReport:
        """Rebuild totals for every customer with completed transactions."""

        stmt = select(FuelTransaction).where(
            FuelTransaction.user_id.is_not(None),
            FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
        )
        result = await self._db.execute(stmt)
        ledger: dict[UUID, list[FuelTransaction]] = defaultdict(list)
        for transaction in result.scalars():
            ledger[transaction.user_id].append(transaction)

        report = BackfillReport(total_users=len(ledger))
        for user_id, transactions in ledger.items():
            points = sum(effective_reward_points(item) for item in transactions)
            try:
                async with self._db.begin_nested():
                    tier = await self.get(user_id)
                    created = tier is None
                    if created:
                        tier = CustomerTier(user_id=user_id)
                        self._db.add(tier)
                    tier.points = points
                    tier.transactions = len(transactions)
                    tier.last_activity = utcnow()
                    tier.tier = determine_tier(points).value
            except SQLAlchemyError:
                report.errors += 1
                logger.exception("Customer tier backfill failed", user_id=str(user_id))
                continue
            if created:
                report.created += 1
            else:
                report.updated += 1

        logger.info(
            "Customer tier backfill completed",
            total_users=report.total_users,
            created=report.created,
            updated=report.updated,
            errors=report.errors,
        )
        return report


__all__ = ["BackfillReport", "TierService", "TierSnapshot", "determine_tier", "TIER_THRESHOLDS"]
