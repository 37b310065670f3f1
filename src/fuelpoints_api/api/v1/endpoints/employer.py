"""Routes for station employers working their assigned pumps."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import PageParams, envelope, page_params
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.assignments import (
    EmployerGiftResponse,
    GiftAssignmentResponse,
    GiftAvailabilityRequest,
    GiftStatusRequest,
)
from fuelpoints_api.schemas.common import PumpSummary, UserSummary
from fuelpoints_api.schemas.dashboard import EmployerStatsResponse
from fuelpoints_api.schemas.pumps import (
    AssignedPumpResponse,
    MaintenanceRequest,
    MaintenanceResponse,
    MeterReadingRequest,
    MeterReadingResponse,
    PumpResponse,
)
from fuelpoints_api.schemas.transactions import (
    EmployerRewardPointsResponse,
    InvoiceReference,
    NextInvoiceResponse,
    RewardPointEntryResponse,
    TransactionCreateRequest,
    TransactionResponse,
)
from fuelpoints_api.schemas.users import (
    CustomerCreateRequest,
    CustomerUpdateRequest,
    EmployerCustomerResponse,
    UserResponse,
)
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.dashboard import DashboardService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.transactions import NewTransaction, TransactionService
from fuelpoints_api.services.users import UserService

router = APIRouter(prefix="/employer", tags=["Employer"])

employer_only = require_roles(UserRoleEnum.EMPLOYER)


# Pumps


@router.get("/pumps")
async def assigned_pumps(
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    rows = await PumpService(session).employer_pumps(context.user_id)
    data = [
        AssignedPumpResponse(
            **PumpResponse.from_pump(row.pump).model_dump(),
            assignment_id=row.assignment_id,
            assigned_at=row.assigned_at,
            assigned_by=UserSummary.model_validate(row.assigned_by) if row.assigned_by is not None else None,
        )
        for row in rows
    ]
    return envelope(data)


@router.post("/pumps/{pump_id}/meter-reading", status_code=status.HTTP_201_CREATED)
async def record_meter_reading(
    pump_id: UUID,
    payload: MeterReadingRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    service = PumpService(session)
    reading = await service.record_meter_reading(
        employer_id=context.user_id,
        pump_id=pump_id,
        start_reading=payload.start_reading,
        end_reading=payload.end_reading,
    )
    pump = await service.get(pump_id)
    await session.commit()
    return envelope(
        {"meterReading": MeterReadingResponse.model_validate(reading), "pump": PumpResponse.from_pump(pump)},
        message="Meter reading recorded successfully",
    )


@router.post("/pumps/{pump_id}/maintenance", status_code=status.HTTP_201_CREATED)
async def report_maintenance(
    pump_id: UUID,
    payload: MaintenanceRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    service = PumpService(session)
    report = await service.report_maintenance(
        employer_id=context.user_id,
        pump_id=pump_id,
        issue=payload.issue,
        description=payload.description,
    )
    pump = await service.get(pump_id)
    await session.commit()
    return envelope(
        {"maintenanceReport": MaintenanceResponse.model_validate(report), "pump": PumpResponse.from_pump(pump)},
        message="Maintenance report submitted successfully",
    )


# Gifts


@router.get("/gifts")
async def assigned_gifts(
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignments = await AssignmentService(session).employer_gift_assignments(context.user_id)
    return envelope([EmployerGiftResponse.from_assignment(item) for item in assignments])


@router.put("/gifts/{assignment_id}/availability")
async def set_gift_availability(
    assignment_id: UUID,
    payload: GiftAvailabilityRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignment = await AssignmentService(session).set_gift_assignment_availability(
        employer_id=context.user_id,
        assignment_id=assignment_id,
        is_available=payload.is_available,
    )
    await session.commit()
    return envelope(GiftAssignmentResponse.model_validate(assignment), message="Gift availability updated")


@router.put("/gifts/{assignment_id}/status")
async def set_gift_status(
    assignment_id: UUID,
    payload: GiftStatusRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    assignment = await AssignmentService(session).set_gift_assignment_status(
        employer_id=context.user_id,
        assignment_id=assignment_id,
        status=payload.status,
    )
    await session.commit()
    return envelope(GiftAssignmentResponse.model_validate(assignment), message="Gift status updated successfully")


@router.get("/dashboard/stats")
async def dashboard_stats(
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    stats = await DashboardService(session).employer_stats(context.user_id)
    return envelope(EmployerStatsResponse(**stats))


# Transactions


@router.get("/transactions/next-invoice-number")
async def next_invoice_number(
    _: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    invoice = await TransactionService(session).next_invoice_number()
    return envelope(NextInvoiceResponse(invoice_number=invoice))


@router.get("/transactions")
async def list_transactions(
    paging: PageParams = Depends(page_params),
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items, total = await TransactionService(session).list_transactions(
        offset=paging.offset,
        limit=paging.limit,
        employer_id=context.user_id,
    )
    return envelope(
        [TransactionResponse.model_validate(item) for item in items],
        pagination=paging.describe(total),
    )


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionCreateRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    transaction = await TransactionService(session).create(
        employer_id=context.user_id,
        payload=NewTransaction(**payload.model_dump()),
    )
    await session.commit()
    return envelope(TransactionResponse.model_validate(transaction), message="Transaction created successfully")


@router.get("/reward-points")
async def reward_points(
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    summary = await DashboardService(session).employer_reward_points(context.user_id)
    entries = [
        RewardPointEntryResponse(
            id=entry.transaction.id,
            transaction=InvoiceReference.model_validate(entry.transaction),
            user=UserSummary.model_validate(entry.transaction.user) if entry.transaction.user else None,
            pump=PumpSummary.model_validate(entry.transaction.pump) if entry.transaction.pump else None,
            points=entry.points,
            created_at=entry.transaction.created_at,
        )
        for entry in summary.entries
    ]
    return envelope(
        EmployerRewardPointsResponse(
            entries=entries,
            per_customer={str(user_id): points for user_id, points in summary.per_customer.items()},
            total=summary.total,
        )
    )


# Customers


@router.get("/users")
async def list_customers(
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    rows = await UserService(session).list_employer_customers(context.user_id)
    data = [
        EmployerCustomerResponse.model_validate(row.user).model_copy(
            update={
                "transaction_count": row.transaction_count,
                "reward_points": row.reward_points,
                "tier": row.tier,
            }
        )
        for row in rows
    ]
    return envelope(data)


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreateRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    result = await UserService(session).link_customer_to_employer(
        employer_id=context.user_id,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        phone=payload.phone,
    )
    await session.commit()
    if not result.created_link:
        message = "User already assigned to you"
    elif result.created_user:
        message = "User created and assigned successfully"
    else:
        message = "User assigned to you successfully"
    return envelope(UserResponse.model_validate(result.user), message=message)


@router.put("/users/{user_id}")
async def update_customer(
    user_id: UUID,
    payload: CustomerUpdateRequest,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    service = UserService(session)
    await service.get_employer_customer(context.user_id, user_id)
    user = await service.update_user(user_id, payload.model_dump(exclude_unset=True))
    await session.commit()
    return envelope(UserResponse.model_validate(user), message="User updated successfully")


@router.delete("/users/{user_id}")
async def delete_customer(
    user_id: UUID,
    context: RequestContext = Depends(employer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    service = UserService(session)
    await service.get_employer_customer(context.user_id, user_id)
    await service.delete_user(user_id)
    await session.commit()
    return envelope(message="User and all related data deleted successfully")
