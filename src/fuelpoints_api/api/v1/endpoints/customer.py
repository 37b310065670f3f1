"""Customer self-service views, scoped to the employers the customer is linked to."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.dependencies import RequestContext, require_roles
from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.schemas.common import PumpSummary, UserSummary
from fuelpoints_api.schemas.gifts import CustomerGiftOfferResponse, GiftResponse
from fuelpoints_api.schemas.redemptions import RedemptionResponse
from fuelpoints_api.schemas.transactions import (
    InvoiceReference,
    RewardBalanceResponse,
    RewardPointEntryResponse,
    TransactionResponse,
)
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.redemptions import RedemptionWorkflow
from fuelpoints_api.services.rewards import effective_reward_points
from fuelpoints_api.services.transactions import TransactionService

router = APIRouter(prefix="/user", tags=["Customer"])

customer_only = require_roles(UserRoleEnum.USER)

NO_EMPLOYER_MESSAGE = "You need to make transactions with an employer first."


@router.get("/transactions")
async def my_transactions(
    context: RequestContext = Depends(customer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items = await TransactionService(session).customer_transactions(context.user_id)
    message = "Transactions retrieved successfully" if items else f"No transactions found. {NO_EMPLOYER_MESSAGE}"
    return envelope([TransactionResponse.model_validate(item) for item in items], message=message)


@router.get("/reward-points")
async def my_reward_points(
    context: RequestContext = Depends(customer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    balance = await TransactionService(session).customer_balance(context.user_id)
    return envelope(
        RewardBalanceResponse(
            total_earned=balance.total_earned,
            total_redeemed=balance.total_redeemed,
            available_balance=balance.available_balance,
        )
    )


@router.get("/reward-points-details")
async def my_reward_points_details(
    context: RequestContext = Depends(customer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items = await TransactionService(session).customer_transactions(context.user_id)
    entries = [
        RewardPointEntryResponse(
            id=item.id,
            transaction=InvoiceReference.model_validate(item),
            pump=PumpSummary.model_validate(item.pump) if item.pump else None,
            employer=UserSummary.model_validate(item.employer) if item.employer else None,
            points=effective_reward_points(item),
            created_at=item.created_at,
        )
        for item in items
    ]
    message = "Reward points details retrieved successfully" if entries else f"No reward points found. {NO_EMPLOYER_MESSAGE}"
    return envelope(entries, message=message)


@router.get("/redemptions")
async def my_redemptions(
    context: RequestContext = Depends(customer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    redemptions = await RedemptionWorkflow(session).list_for_customer(context.user_id)
    return envelope(
        [RedemptionResponse.model_validate(item) for item in redemptions],
        message="Redemptions retrieved successfully" if redemptions else "No redemptions found.",
    )


@router.get("/available-gifts")
async def my_available_gifts(
    context: RequestContext = Depends(customer_only),
    session: AsyncSession = Depends(get_session),
) -> dict:
    offers = await GiftService(session).available_for_customer(context.user_id)
    data = [
        CustomerGiftOfferResponse(
            assignment_id=offer.assignment.id,
            gift=GiftResponse.model_validate(offer.assignment.gift),
            points_required=offer.assignment.points_required,
            points_available=offer.points_available,
            is_available=offer.is_available,
            status=offer.assignment.status,
            assigned_by=UserSummary.model_validate(offer.assignment.assigner) if offer.assignment.assigner else None,
        )
        for offer in offers
    ]
    return envelope(data)
