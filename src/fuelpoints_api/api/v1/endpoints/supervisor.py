"""Supervisor routes: gift offers, customer links and the dashboard."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.assignments import (
    GiftAssignmentRequest,
    GiftAssignmentResponse,
    UserAssignmentRequest,
    UserAssignmentResponse,
)
from fuelpoints_api.schemas.dashboard import (
    PumpStatusCounts,
    SupervisedCustomerResponse,
    SupervisedEmployerResponse,
    SupervisedPump,
    SupervisorStatsResponse,
)
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.dashboard import DashboardService, SupervisorDashboard

router = APIRouter(prefix="/supervisor", tags=["Supervisor"])

supervisor_only = require_roles(UserRoleEnum.SUPERVISOR)


def _dashboard_payload(dashboard: SupervisorDashboard) -> SupervisorStatsResponse:
    return SupervisorStatsResponse(
        pump_status=PumpStatusCounts(active=dashboard.active_pumps, total=dashboard.total_pumps),
        assigned_employers=len(dashboard.employers),
        daily_sales=dashboard.daily_sales,
        pumps=[SupervisedPump.model_validate(pump) for pump in dashboard.pumps],
        employers=[
            SupervisedEmployerResponse(
                id=row.employer.id,
                email=row.employer.email,
                name=row.employer.name,
                role=row.employer.role,
                assigned_pumps=[SupervisedPump.model_validate(pump) for pump in row.pumps],
                assigned_pumps_count=len(row.pumps),
            )
            for row in dashboard.employers
        ],
        users=[
            SupervisedCustomerResponse(
                id=row.user.id,
                email=row.user.email,
                name=row.user.name,
                role=row.user.role,
                points=row.points,
                transaction_count=row.transaction_count,
            )
            for row in dashboard.customers
        ],
    )


@router.post("/assign-gift", status_code=status.HTTP_201_CREATED)
async def assign_gift(
    payload: GiftAssignmentRequest,
    context: RequestContext = Depends(supervisor_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    outcome = await AssignmentService(session).assign_gift(
        gift_id=payload.gift_id,
        assigned_to_id=payload.assigned_to_id,
        assigned_to_role=payload.assigned_to_role,
        assigned_by=context.user_id,
        points_available=payload.points_available,
    )
    await session.commit()
    message = "Gift assigned successfully" if outcome.created else "Gift assignment updated successfully"
    return envelope(GiftAssignmentResponse.model_validate(outcome.assignment), message=message)


@router.get("/assignments")
async def gift_assignments(
    context: RequestContext = Depends(supervisor_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignments = await AssignmentService(session).list_gift_assignments(context.user_id)
    return envelope([GiftAssignmentResponse.model_validate(item) for item in assignments])


@router.post("/assign-user", status_code=status.HTTP_201_CREATED)
async def assign_user(
    payload: UserAssignmentRequest,
    context: RequestContext = Depends(supervisor_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignment = await AssignmentService(session).assign_user(
        user_id=payload.user_id,
        employer_id=payload.employer_id,
        assigned_by=context.user_id,
    )
    await session.commit()
    return envelope(UserAssignmentResponse.model_validate(assignment), message="User assigned to employer successfully")


@router.get("/user-assignments")
async def user_assignments(
    user_id: UUID = Query(..., alias="userId"),
    _: RequestContext = Depends(supervisor_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignments = await AssignmentService(session).list_user_assignments(user_id)
    return envelope([UserAssignmentResponse.model_validate(item) for item in assignments])


@router.get("/dashboard/stats")
async def dashboard_stats(
    context: RequestContext = Depends(supervisor_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    dashboard = await DashboardService(session).supervisor_stats(context.user_id)
    message = "Dashboard stats retrieved successfully" if dashboard.pumps else "No pumps assigned"
    return envelope(_dashboard_payload(dashboard), message=message)
