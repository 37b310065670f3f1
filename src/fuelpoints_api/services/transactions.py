"""Fuel sale ledger."""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ConflictError, NotFound, ValidationFailed
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models.pump import Pump
from fuelpoints_api.models.redemption import Redemption, RedemptionStatusEnum
from fuelpoints_api.models.transaction import (
    FuelTransaction,
    PaymentMethodEnum,
    TransactionStatusEnum,
    TransactionTypeEnum,
)
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.rewards import calculate_reward_points, effective_reward_points
from fuelpoints_api.services.scoping import AssignmentGraph
from fuelpoints_api.services.station_settings import StationSettingsService
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.users import UserService


DUPLICATE_INVOICE_MESSAGE = "Transaction with this invoice number already exists"
INVOICE_PATTERN = re.compile(r"^I-(\d+)$")

_RELATIONS = ["user", "pump", "employer"]


@dataclass(slots=True)
class NewTransaction:
    pump_id: UUID
    amount: Decimal
    liters: Optional[Decimal] = None
    user_id: Optional[UUID] = None
    invoice_number: Optional[str] = None
    payment: PaymentMethodEnum = PaymentMethodEnum.CASH
    status: TransactionStatusEnum = TransactionStatusEnum.COMPLETED
    description: Optional[str] = None
    customer_email: str = ""
    customer_name: str = ""


@dataclass(slots=True)
class RewardBalance:
    total_earned: int
    total_redeemed: int

    @property
    def available_balance(self) -> int:
        return self.total_earned - self.total_redeemed


class TransactionService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def create(self, *, employer_id: UUID, payload: NewTransaction) -> FuelTransaction:
        """Record a sale, price its reward points and credit the customer."""

        if payload.amount is None or payload.amount <= 0:
            raise ValidationFailed("Amount must be greater than 0")
        if payload.liters is not None and payload.liters < 0:
            raise ValidationFailed("Liters cannot be negative")
        if await self._db.get(Pump, payload.pump_id) is None:
            raise NotFound("Pump not found")
        if payload.user_id is not None:
            await UserService(self._db).get_with_role(payload.user_id, UserRoleEnum.USER, label="User")

        invoice_number = (payload.invoice_number or "").strip() or None
        if invoice_number is not None:
            clash = await self._db.execute(
                select(FuelTransaction.id).where(FuelTransaction.invoice_number == invoice_number)
            )
            if clash.first() is not None:
                raise ConflictError(DUPLICATE_INVOICE_MESSAGE)

        rates = await StationSettingsService(self._db).get()
        points = calculate_reward_points(liters=payload.liters, amount=payload.amount, rates=rates)

        transaction = FuelTransaction(
            invoice_number=invoice_number,
            amount=payload.amount,
            liters=payload.liters,
            payment=payload.payment.value,
            type=TransactionTypeEnum.FUEL.value,
            status=payload.status.value,
            description=payload.description or f"Fuel sale - {invoice_number or 'N/A'}",
            customer_email=(payload.customer_email or "").strip().lower(),
            customer_name=(payload.customer_name or "").strip(),
            reward_points=points,
            user_id=payload.user_id,
            pump_id=payload.pump_id,
            employer_id=employer_id,
        )
        self._db.add(transaction)
        await flush_or_conflict(self._db, DUPLICATE_INVOICE_MESSAGE)
        logger.info(
            "Transaction recorded",
            transaction_id=str(transaction.id),
            employer_id=str(employer_id),
            reward_points=points,
            status=transaction.status,
        )

        if payload.user_id is not None and payload.status is TransactionStatusEnum.COMPLETED:
            await TierService(self._db).apply_transaction(payload.user_id, points)

        await self._db.refresh(transaction, attribute_names=_RELATIONS)
        return transaction

    async def next_invoice_number(self) -> str:
        stmt = select(FuelTransaction.invoice_number).where(FuelTransaction.invoice_number.like("I-%"))
        highest = 0
        for invoice in (await self._db.execute(stmt)).scalars():
            match = INVOICE_PATTERN.match(invoice or "")
            if match:
                highest = max(highest, int(match.group(1)))
        return f"I-{highest + 1:02d}"

    async def get(self, transaction_id: UUID, *, employer_id: Optional[UUID] = None) -> FuelTransaction:
        stmt = select(FuelTransaction).where(FuelTransaction.id == transaction_id)
        if employer_id is not None:
            stmt = stmt.where(FuelTransaction.employer_id == employer_id)
        transaction = (await self._db.execute(stmt)).scalar_one_or_none()
        if transaction is None:
            raise NotFound("Transaction not found")
        return transaction

    async def get_by_invoice(self, invoice_number: str) -> FuelTransaction:
        stmt = select(FuelTransaction).where(FuelTransaction.invoice_number == invoice_number)
        transaction = (await self._db.execute(stmt)).scalar_one_or_none()
        if transaction is None:
            raise NotFound("Invoice not found")
        return transaction

    async def list_transactions(
        self,
        *,
        offset: int,
        limit: int,
        employer_id: Optional[UUID] = None,
        status: Optional[TransactionStatusEnum] = None,
    ) -> tuple[list[FuelTransaction], int]:
        filters: list[Any] = []
        if employer_id is not None:
            filters.append(FuelTransaction.employer_id == employer_id)
        if status is not None:
            filters.append(FuelTransaction.status == status.value)

        total = (await self._db.execute(select(func.count(FuelTransaction.id)).where(*filters))).scalar_one()
        stmt = (
            select(FuelTransaction)
            .where(*filters)
            .order_by(FuelTransaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await self._db.execute(stmt)).scalars()), int(total)

    async def recent(self, limit: int = 5) -> list[FuelTransaction]:
        stmt = select(FuelTransaction).order_by(FuelTransaction.created_at.desc()).limit(limit)
        return list((await self._db.execute(stmt)).scalars())

    async def stats(self) -> dict[str, Any]:
        completed_filter = FuelTransaction.status == TransactionStatusEnum.COMPLETED.value
        revenue = (
            await self._db.execute(select(func.coalesce(func.sum(FuelTransaction.amount), 0)).where(completed_filter))
        ).scalar_one()
        completed = (await self._db.execute(select(func.count(FuelTransaction.id)).where(completed_filter))).scalar_one()
        pending = (
            await self._db.execute(
                select(func.count(FuelTransaction.id)).where(
                    FuelTransaction.status == TransactionStatusEnum.PENDING.value
                )
            )
        ).scalar_one()
        total = (await self._db.execute(select(func.count(FuelTransaction.id)))).scalar_one()
        return {
            "total_revenue": Decimal(str(revenue)),
            "completed": int(completed),
            "pending": int(pending),
            "total": int(total),
        }

    async def customer_transactions(self, user_id: UUID) -> list[FuelTransaction]:
        """A customer's sales at the employers they are linked to."""

        employer_ids = await AssignmentGraph(self._db).visible_employer_ids(user_id)
        if not employer_ids:
            return []
        stmt = (
            select(FuelTransaction)
            .where(FuelTransaction.user_id == user_id, FuelTransaction.employer_id.in_(employer_ids))
            .order_by(FuelTransaction.created_at.desc())
        )
        return list((await self._db.execute(stmt)).scalars())

    async def customer_balance(self, user_id: UUID) -> RewardBalance:
        employer_ids = await AssignmentGraph(self._db).visible_employer_ids(user_id)
        if not employer_ids:
            return RewardBalance(total_earned=0, total_redeemed=0)

        stmt = select(FuelTransaction).where(
            FuelTransaction.user_id == user_id,
            FuelTransaction.employer_id.in_(employer_ids),
            FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
        )
        earned = sum(effective_reward_points(item) for item in (await self._db.execute(stmt)).scalars())

        redeemed_stmt = select(func.coalesce(func.sum(Redemption.points_used), 0)).where(
            Redemption.user_id == user_id,
            Redemption.status.in_((RedemptionStatusEnum.APPROVED.value, RedemptionStatusEnum.COMPLETED.value)),
        )
        redeemed = (await self._db.execute(redeemed_stmt)).scalar_one()
        return RewardBalance(total_earned=earned, total_redeemed=int(redeemed))


__all__ = [
    "DUPLICATE_INVOICE_MESSAGE",
    "NewTransaction",
    "RewardBalance",
    "TransactionService",
]
