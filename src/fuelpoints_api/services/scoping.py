"""Reachability over the assignment edges that scope what each role can see.

Nodes are ``(kind, id)`` pairs. Edges come from live assignment rows and are
queried one hop at a time, so every call reflects the current state of the
database. An empty frontier at any hop means no access, never an error.
"""

from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.models.assignment import (
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignment,
    PumpAssignment,
    UserAssignment,
)
from fuelpoints_api.models.pump import Pump
from fuelpoints_api.models.transaction import FuelTransaction


class NodeKind(str, Enum):
    USER = "user"
    EMPLOYER = "employer"
    PUMP = "pump"
    SUPERVISOR = "supervisor"
    GIFT = "gift"


Node = tuple[NodeKind, UUID]
_Hop = Callable[[set[UUID], Node], Awaitable[set[UUID]]]

MAX_DEPTH = 4

CUSTOMER_TO_EMPLOYERS = (NodeKind.EMPLOYER,)
CUSTOMER_TO_PUMPS = (NodeKind.EMPLOYER, NodeKind.PUMP)
CUSTOMER_TO_SUPERVISORS = (NodeKind.EMPLOYER, NodeKind.PUMP, NodeKind.SUPERVISOR)
CUSTOMER_TO_GIFTS = (NodeKind.EMPLOYER, NodeKind.PUMP, NodeKind.SUPERVISOR, NodeKind.GIFT)
SUPERVISOR_TO_EMPLOYERS = (NodeKind.PUMP, NodeKind.EMPLOYER)
SUPERVISOR_TO_CUSTOMERS = (NodeKind.PUMP, NodeKind.EMPLOYER, NodeKind.USER)


class AssignmentGraph:
    """Hop-by-hop traversal of the user, employer, pump, supervisor and gift edges."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._edges: dict[tuple[NodeKind, NodeKind], _Hop] = {
            (NodeKind.USER, NodeKind.EMPLOYER): self._customer_employers,
            (NodeKind.EMPLOYER, NodeKind.PUMP): self._employer_pumps,
            (NodeKind.PUMP, NodeKind.SUPERVISOR): self._pump_supervisors,
            (NodeKind.SUPERVISOR, NodeKind.GIFT): self._supervisor_gifts_for_origin,
            (NodeKind.SUPERVISOR, NodeKind.PUMP): self._supervised_pumps,
            (NodeKind.PUMP, NodeKind.EMPLOYER): self._pump_employers,
            (NodeKind.EMPLOYER, NodeKind.USER): self._employer_customers,
            (NodeKind.SUPERVISOR, NodeKind.USER): self._gift_recipients,
        }

    async def reachable(self, start: Node, path: Sequence[NodeKind]) -> set[UUID]:
        """Ids of the last kind in ``path`` reachable from ``start``."""

        if len(path) > MAX_DEPTH:
            raise ValueError(f"Traversal deeper than {MAX_DEPTH} hops is not supported")

        current_kind, start_id = start
        frontier: set[UUID] = {start_id}
        for next_kind in path:
            hop = self._edges.get((current_kind, next_kind))
            if hop is None:
                raise ValueError(f"No edge from {current_kind.value} to {next_kind.value}")
            frontier = await hop(frontier, start)
            if not frontier:
                return set()
            current_kind = next_kind
        return frontier

    async def visible_employer_ids(self, user_id: UUID) -> set[UUID]:
        return await self.reachable((NodeKind.USER, user_id), CUSTOMER_TO_EMPLOYERS)

    async def visible_pump_ids(self, user_id: UUID) -> set[UUID]:
        return await self.reachable((NodeKind.USER, user_id), CUSTOMER_TO_PUMPS)

    async def visible_supervisor_ids(self, user_id: UUID) -> set[UUID]:
        return await self.reachable((NodeKind.USER, user_id), CUSTOMER_TO_SUPERVISORS)

    async def visible_gift_ids(self, user_id: UUID) -> set[UUID]:
        return await self.reachable((NodeKind.USER, user_id), CUSTOMER_TO_GIFTS)

    async def supervised_employer_ids(self, supervisor_id: UUID) -> set[UUID]:
        return await self.reachable((NodeKind.SUPERVISOR, supervisor_id), SUPERVISOR_TO_EMPLOYERS)

    async def supervised_user_ids(self, supervisor_id: UUID) -> set[UUID]:
        """Customers who received a gift from the supervisor or buy at their pumps."""

        start = (NodeKind.SUPERVISOR, supervisor_id)
        gifted = await self.reachable(start, (NodeKind.USER,))
        through_pumps = await self.reachable(start, SUPERVISOR_TO_CUSTOMERS)
        return gifted | through_pumps

    async def _customer_employers(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(UserAssignment.employer_id).where(
            UserAssignment.user_id.in_(ids),
            UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        return await self._collect(stmt)

    async def _employer_pumps(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(PumpAssignment.pump_id).where(
            PumpAssignment.employer_id.in_(ids),
            PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        return await self._collect(stmt)

    async def _pump_supervisors(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(Pump.supervisor_id).where(Pump.id.in_(ids), Pump.supervisor_id.is_not(None))
        return await self._collect(stmt)

    async def _supervisor_gifts_for_origin(self, ids: set[UUID], origin: Node) -> set[UUID]:
        kind, origin_id = origin
        if kind is not NodeKind.USER:
            return set()
        stmt = select(GiftAssignment.gift_id).where(
            GiftAssignment.assigned_by.in_(ids),
            GiftAssignment.assigned_to_id == origin_id,
            GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.USER.value,
        )
        return await self._collect(stmt)

    async def _supervised_pumps(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(Pump.id).where(Pump.supervisor_id.in_(ids))
        return await self._collect(stmt)

    async def _pump_employers(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(PumpAssignment.employer_id).where(
            PumpAssignment.pump_id.in_(ids),
            PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        return await self._collect(stmt)

    async def _employer_customers(self, ids: set[UUID], origin: Node) -> set[UUID]:
        linked = select(UserAssignment.user_id).where(
            UserAssignment.employer_id.in_(ids),
            UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        transacted = select(FuelTransaction.user_id).where(
            FuelTransaction.employer_id.in_(ids),
            FuelTransaction.user_id.is_not(None),
        )
        return await self._collect(linked) | await self._collect(transacted)

    async def _gift_recipients(self, ids: set[UUID], origin: Node) -> set[UUID]:
        stmt = select(GiftAssignment.assigned_to_id).where(
            GiftAssignment.assigned_by.in_(ids),
            GiftAssignment.assigned_to_role == GiftAssigneeRoleEnum.USER.value,
        )
        return await self._collect(stmt)

    async def _collect(self, stmt) -> set[UUID]:
        result = await self._db.execute(stmt)
        return {value for value in result.scalars() if value is not None}


__all__ = [
    "AssignmentGraph",
    "NodeKind",
    "CUSTOMER_TO_EMPLOYERS",
    "CUSTOMER_TO_GIFTS",
    "CUSTOMER_TO_PUMPS",
    "CUSTOMER_TO_SUPERVISORS",
    "SUPERVISOR_TO_CUSTOMERS",
    "SUPERVISOR_TO_EMPLOYERS",
]
