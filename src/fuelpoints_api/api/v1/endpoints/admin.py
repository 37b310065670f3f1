"""Administrator console routes."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import PageParams, envelope, page_params
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.assignment import AssignmentStatusEnum
from fuelpoints_api.models.transaction import TransactionStatusEnum
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.assignments import (
    PumpAssignmentRequest,
    PumpAssignmentResponse,
    PumpAssignmentUpdateRequest,
)
from fuelpoints_api.schemas.dashboard import (
    AdminStatsResponse,
    BackfillResponse,
    StationSettingsResponse,
    StationSettingsUpdateRequest,
)
from fuelpoints_api.schemas.pumps import PumpCreateRequest, PumpResponse, PumpStatsResponse, PumpUpdateRequest
from fuelpoints_api.schemas.transactions import TransactionResponse, TransactionStatsResponse
from fuelpoints_api.schemas.users import CustomerTierResponse
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.dashboard import DashboardService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.station_settings import StationSettingsService
from fuelpoints_api.services.tiers import TierService
from fuelpoints_api.services.transactions import TransactionService

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_roles(UserRoleEnum.ADMIN)


@router.get("/dashboard/stats")
async def dashboard_stats(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    stats = await DashboardService(session).admin_stats()
    return envelope(AdminStatsResponse(**stats))


# Pumps


@router.get("/pumps")
async def list_pumps(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    pumps = await PumpService(session).list_pumps()
    return envelope([PumpResponse.from_pump(pump) for pump in pumps])


@router.post("/pumps", status_code=status.HTTP_201_CREATED)
async def create_pump(
    payload: PumpCreateRequest,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    pump = await PumpService(session).create(
        name=payload.name,
        fuel_types=[fuel.value for fuel in payload.fuel_types],
        supervisor_id=payload.supervisor_id,
    )
    await session.commit()
    return envelope(PumpResponse.from_pump(pump), message="Pump created successfully")


@router.get("/pumps/stats")
async def pump_stats(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    stats = await PumpService(session).pump_stats()
    return envelope(PumpStatsResponse(**stats))


@router.put("/pumps/{pump_id}")
async def update_pump(
    pump_id: UUID,
    payload: PumpUpdateRequest,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("fuel_types") is not None:
        changes["fuel_types"] = [fuel.value for fuel in payload.fuel_types]
    pump = await PumpService(session).update(pump_id, changes)
    await session.commit()
    return envelope(PumpResponse.from_pump(pump), message="Pump updated successfully")


@router.delete("/pumps/{pump_id}")
async def delete_pump(
    pump_id: UUID,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await PumpService(session).delete(pump_id)
    await session.commit()
    return envelope(message="Pump deleted successfully")


# Transactions


@router.get("/transactions/stats")
async def transaction_stats(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    stats = await TransactionService(session).stats()
    return envelope(TransactionStatsResponse(**stats))


@router.get("/transactions")
async def list_transactions(
    status_filter: TransactionStatusEnum | None = Query(default=None, alias="status"),
    paging: PageParams = Depends(page_params),
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items, total = await TransactionService(session).list_transactions(
        offset=paging.offset,
        limit=paging.limit,
        status=status_filter,
    )
    return envelope(
        [TransactionResponse.model_validate(item) for item in items],
        pagination=paging.describe(total),
    )


# Tiers and settings


@router.get("/customer-tiers")
async def customer_tiers(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    tiers = await TierService(session).list_tiers()
    return envelope([CustomerTierResponse.model_validate(tier) for tier in tiers])


@router.post("/backfill-customer-tiers")
async def backfill_customer_tiers(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    report = await TierService(session).backfill()
    await session.commit()
    return envelope(
        BackfillResponse.model_validate(report),
        message=f"Backfill complete: {report.created} created, {report.updated} updated, {report.errors} errors",
    )


@router.get("/settings")
async def get_station_settings(
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    current = await StationSettingsService(session).get()
    await session.commit()
    return envelope(StationSettingsResponse.model_validate(current))


@router.post("/settings")
async def update_station_settings(
    payload: StationSettingsUpdateRequest,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    current = await StationSettingsService(session).update(payload.model_dump(exclude_unset=True))
    await session.commit()
    return envelope(StationSettingsResponse.model_validate(current), message="Settings updated successfully")


# Pump assignments


@router.post("/assign-pump", status_code=status.HTTP_201_CREATED)
async def assign_pump(
    payload: PumpAssignmentRequest,
    context: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignment = await AssignmentService(session).assign_pump(
        pump_id=payload.pump_id,
        employer_id=payload.employer_id,
        assigned_by=context.user_id,
    )
    await session.commit()
    return envelope(PumpAssignmentResponse.model_validate(assignment), message="Pump assigned successfully")


@router.get("/pump-assignments")
async def list_pump_assignments(
    status_filter: AssignmentStatusEnum | None = Query(default=None, alias="status"),
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignments = await AssignmentService(session).list_pump_assignments(status_filter)
    return envelope([PumpAssignmentResponse.model_validate(item) for item in assignments])


@router.put("/pump-assignments/{assignment_id}")
async def update_pump_assignment(
    assignment_id: UUID,
    payload: PumpAssignmentUpdateRequest,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignment = await AssignmentService(session).update_pump_assignment(
        assignment_id,
        status=payload.status,
        employer_id=payload.employer_id,
    )
    await session.commit()
    return envelope(PumpAssignmentResponse.model_validate(assignment), message="Assignment updated successfully")


@router.delete("/pump-assignments/{assignment_id}")
async def delete_pump_assignment(
    assignment_id: UUID,
    _: RequestContext = Depends(admin_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    await AssignmentService(session).delete_pump_assignment(assignment_id)
    await session.commit()
    return envelope(message="Assignment deleted successfully")
