"""Public transaction lookups for receipts and the landing page."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.responses import envelope
from fuelpoints_api.db.session import get_session
from fuelpoints_api.schemas.transactions import TransactionResponse
from fuelpoints_api.services.transactions import TransactionService

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("/recent")
async def recent_transactions(
    limit: int = Query(default=5, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
) -> dict:
    items = await TransactionService(session).recent(limit)
    return envelope([TransactionResponse.model_validate(item) for item in items])


@router.get("/invoice/{invoice_number}")
async def transaction_by_invoice(invoice_number: str, session: AsyncSession = Depends(get_session)) -> dict:
    transaction = await TransactionService(session).get_by_invoice(invoice_number)
    return envelope(TransactionResponse.model_validate(transaction))


@router.get("/{transaction_id}")
async def transaction_detail(transaction_id: UUID, session: AsyncSession = Depends(get_session)) -> dict:
    transaction = await TransactionService(session).get(transaction_id)
    return envelope(TransactionResponse.model_validate(transaction))
