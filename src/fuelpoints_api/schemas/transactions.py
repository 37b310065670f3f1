from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from fuelpoints_api.models.transaction import PaymentMethodEnum, TransactionStatusEnum
from fuelpoints_api.schemas.common import CamelModel, PumpSummary, UserSummary


class TransactionCreateRequest(CamelModel):
    pump_id: UUID
    amount: Decimal
    liters: Decimal | None = None
    user_id: UUID | None = None
    invoice_number: str | None = Field(default=None, max_length=64)
    payment: PaymentMethodEnum = PaymentMethodEnum.CASH
    status: TransactionStatusEnum = TransactionStatusEnum.COMPLETED
    description: str | None = Field(default=None, max_length=500)
    customer_email: str = Field(default="", max_length=255)
    customer_name: str = Field(default="", max_length=120)


class TransactionResponse(CamelModel):
    id: UUID
    invoice_number: str | None = None
    description: str | None = None
    amount: float
    liters: float | None = None
    payment: str
    type: str
    status: str
    customer_email: str
    customer_name: str
    reward_points: int | None = None
    user_id: UUID | None = None
    pump_id: UUID | None = None
    employer_id: UUID | None = None
    user: UserSummary | None = None
    pump: PumpSummary | None = None
    employer: UserSummary | None = None
    created_at: datetime


class TransactionStatsResponse(CamelModel):
    total_revenue: float
    completed: int
    pending: int
    total: int


class NextInvoiceResponse(CamelModel):
    invoice_number: str


class InvoiceReference(CamelModel):
    id: UUID
    invoice_number: str | None = None
    amount: float


class RewardPointEntryResponse(CamelModel):
    id: UUID
    transaction: InvoiceReference
    user: UserSummary | None = None
    pump: PumpSummary | None = None
    employer: UserSummary | None = None
    points: int
    created_at: datetime


class RewardBalanceResponse(CamelModel):
    total_earned: int
    total_redeemed: int
    available_balance: int


class EmployerRewardPointsResponse(CamelModel):
    entries: list[RewardPointEntryResponse]
    per_customer: dict[str, int]
    total: int
