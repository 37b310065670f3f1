"""Aggregate figures for the role dashboards."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.models._mixins import utcnow
from fuelpoints_api.models.assignment import (
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignment,
    GiftAssignmentStatusEnum,
    PumpAssignment,
)
from fuelpoints_api.models.gift import Gift
from fuelpoints_api.models.pump import Pump, PumpStatusEnum
from fuelpoints_api.models.transaction import FuelTransaction, TransactionStatusEnum
from fuelpoints_api.models.user import User, UserRoleEnum
from fuelpoints_api.services.rewards import effective_reward_points
from fuelpoints_api.services.scoping import AssignmentGraph


def today_start() -> datetime:
    return datetime.combine(utcnow().date(), time.min, tzinfo=timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite hands back naive timestamps
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class EmployerRewardEntry:
    transaction: FuelTransaction
    points: int


@dataclass(slots=True)
class EmployerRewardPoints:
    entries: list[EmployerRewardEntry]
    per_customer: dict[UUID, int]

    @property
    def total(self) -> int:
        return sum(entry.points for entry in self.entries)


@dataclass(slots=True)
class SupervisedEmployer:
    employer: User
    pumps: list[Pump]


@dataclass(slots=True)
class SupervisedCustomer:
    user: User
    points: int
    transaction_count: int


@dataclass(slots=True)
class SupervisorDashboard:
    active_pumps: int = 0
    total_pumps: int = 0
    daily_sales: Decimal = Decimal("0")
    pumps: list[Pump] = field(default_factory=list)
    employers: list[SupervisedEmployer] = field(default_factory=list)
    customers: list[SupervisedCustomer] = field(default_factory=list)


class DashboardService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def admin_stats(self) -> dict[str, Any]:
        start = today_start()
        completed = FuelTransaction.status == TransactionStatusEnum.COMPLETED.value
        revenue = await self._scalar(
            select(func.coalesce(func.sum(FuelTransaction.amount), 0)).where(
                completed, FuelTransaction.created_at >= start
            )
        )
        return {
            "today_revenue": Decimal(str(revenue)),
            "total_transactions": await self._scalar(select(func.count(FuelTransaction.id))),
            "today_transactions": await self._scalar(
                select(func.count(FuelTransaction.id)).where(FuelTransaction.created_at >= start)
            ),
            "active_pumps": await self._scalar(
                select(func.count(Pump.id)).where(Pump.status == PumpStatusEnum.ACTIVE.value)
            ),
            "total_pumps": await self._scalar(select(func.count(Pump.id))),
            "total_users": await self._scalar(
                select(func.count(User.id)).where(User.role != UserRoleEnum.ADMIN.value)
            ),
            "total_gifts": await self._scalar(select(func.count(Gift.id))),
        }

    async def employer_stats(self, employer_id: UUID) -> dict[str, Any]:
        assigned_pumps = await self._scalar(
            select(func.count(PumpAssignment.id)).where(
                PumpAssignment.employer_id == employer_id,
                PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
            )
        )

        gift_counts: dict[str, int] = defaultdict(int)
        gift_stmt = (
            select(GiftAssignment.status, func.count(GiftAssignment.id))
            .where(
                GiftAssignment.assigned_to_id == employer_id,
                GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.EMPLOYER.value,
            )
            .group_by(GiftAssignment.status)
        )
        for status, count in (await self._db.execute(gift_stmt)).all():
            gift_counts[status] = int(count)

        start = today_start()
        daily_sales = Decimal("0")
        total_liters = Decimal("0")
        total_invoices = 0
        tx_stmt = select(FuelTransaction).where(
            FuelTransaction.employer_id == employer_id,
            FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
        )
        for transaction in (await self._db.execute(tx_stmt)).scalars():
            total_invoices += 1
            total_liters += transaction.liters or Decimal("0")
            if _as_utc(transaction.created_at) >= start:
                daily_sales += transaction.amount or Decimal("0")

        return {
            "assigned_pumps_count": assigned_pumps,
            "assigned_gifts_count": sum(gift_counts.values()),
            "available_gifts_count": gift_counts[GiftAssignmentStatusEnum.AVAILABLE.value],
            "pending_gifts_count": gift_counts[GiftAssignmentStatusEnum.PENDING.value],
            "daily_fuel_sales": daily_sales,
            "total_liters": total_liters,
            "total_invoices": total_invoices,
        }

    async def employer_reward_points(self, employer_id: UUID) -> EmployerRewardPoints:
        """Points the employer's sales earned, newest first, with a per-customer total."""

        stmt = (
            select(FuelTransaction)
            .where(FuelTransaction.employer_id == employer_id)
            .order_by(FuelTransaction.created_at.desc())
        )
        entries: list[EmployerRewardEntry] = []
        per_customer: dict[UUID, int] = defaultdict(int)
        for transaction in (await self._db.execute(stmt)).scalars():
            points = effective_reward_points(transaction)
            entries.append(EmployerRewardEntry(transaction=transaction, points=points))
            if transaction.user_id is not None:
                per_customer[transaction.user_id] += points
        return EmployerRewardPoints(entries=entries, per_customer=dict(per_customer))

    async def supervisor_stats(self, supervisor_id: UUID) -> SupervisorDashboard:
        pumps = list(
            (
                await self._db.execute(
                    select(Pump).where(Pump.supervisor_id == supervisor_id).order_by(Pump.name)
                )
            ).scalars()
        )
        if not pumps:
            return SupervisorDashboard()

        pump_ids = [pump.id for pump in pumps]
        pumps_by_id = {pump.id: pump for pump in pumps}
        assignment_stmt = select(PumpAssignment).where(
            PumpAssignment.pump_id.in_(pump_ids),
            PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        employer_pumps: dict[UUID, list[Pump]] = defaultdict(list)
        employers: dict[UUID, User] = {}
        for assignment in (await self._db.execute(assignment_stmt)).scalars():
            if assignment.employer is None:
                continue
            employers[assignment.employer_id] = assignment.employer
            employer_pumps[assignment.employer_id].append(pumps_by_id[assignment.pump_id])

        daily_sales = await self._scalar(
            select(func.coalesce(func.sum(FuelTransaction.amount), 0)).where(
                FuelTransaction.pump_id.in_(pump_ids),
                FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
                FuelTransaction.created_at >= today_start(),
            )
        )

        return SupervisorDashboard(
            active_pumps=sum(1 for pump in pumps if pump.status == PumpStatusEnum.ACTIVE.value),
            total_pumps=len(pumps),
            daily_sales=Decimal(str(daily_sales)),
            pumps=pumps,
            employers=[
                SupervisedEmployer(employer=employer, pumps=employer_pumps[employer_id])
                for employer_id, employer in employers.items()
            ],
            customers=await self._supervised_customers(supervisor_id, set(employers)),
        )

    async def _supervised_customers(
        self, supervisor_id: UUID, employer_ids: set[UUID]
    ) -> list[SupervisedCustomer]:
        if not employer_ids:
            return []
        customer_ids = await AssignmentGraph(self._db).supervised_user_ids(supervisor_id)
        if not customer_ids:
            return []

        users = list(
            (
                await self._db.execute(
                    select(User)
                    .where(User.id.in_(customer_ids), User.role == UserRoleEnum.USER.value)
                    .order_by(User.email)
                )
            ).scalars()
        )
        points: dict[UUID, int] = defaultdict(int)
        counts: dict[UUID, int] = defaultdict(int)
        tx_stmt = select(FuelTransaction).where(
            FuelTransaction.employer_id.in_(employer_ids),
            FuelTransaction.user_id.in_([user.id for user in users]),
            FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
        )
        for transaction in (await self._db.execute(tx_stmt)).scalars():
            points[transaction.user_id] += effective_reward_points(transaction)
            counts[transaction.user_id] += 1
        return [
            SupervisedCustomer(user=user, points=points[user.id], transaction_count=counts[user.id])
            for user in users
        ]

    async def _scalar(self, stmt) -> Any:
        value = (await self._db.execute(stmt)).scalar_one()
        return int(value) if isinstance(value, int) else value


__all__ = [
    "DashboardService",
    "EmployerRewardPoints",
    "SupervisedCustomer",
    "SupervisedEmployer",
    "SupervisorDashboard",
    "today_start",
]
