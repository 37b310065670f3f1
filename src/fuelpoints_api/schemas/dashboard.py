from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import Field

from fuelpoints_api.schemas.common import CamelModel


class AdminStatsResponse(CamelModel):
    today_revenue: float
    total_transactions: int
    today_transactions: int
    active_pumps: int
    total_pumps: int
    total_users: int
    total_gifts: int


class EmployerStatsResponse(CamelModel):
    assigned_pumps_count: int
    assigned_gifts_count: int
    available_gifts_count: int
    pending_gifts_count: int
    daily_fuel_sales: float
    total_liters: float
    total_invoices: int


class PumpStatusCounts(CamelModel):
    active: int
    total: int


class SupervisedPump(CamelModel):
    id: UUID
    name: str
    status: str
    fuel_types: list[str]


class SupervisedEmployerResponse(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    role: str
    assigned_pumps: list[SupervisedPump]
    assigned_pumps_count: int


class SupervisedCustomerResponse(CamelModel):
    id: UUID
    email: str
    name: str | None = None
    role: str
    points: int
    transaction_count: int


class SupervisorStatsResponse(CamelModel):
    pump_status: PumpStatusCounts
    assigned_employers: int
    daily_sales: float
    pumps: list[SupervisedPump]
    employers: list[SupervisedEmployerResponse]
    users: list[SupervisedCustomerResponse]


class StationSettingsResponse(CamelModel):
    station_name: str
    address: str
    phone: str
    email: str
    petrol_price: float
    diesel_price: float
    lpg_price: float
    cng_price: float
    reward_multiplier: float
    points_per_liter: float


class StationSettingsUpdateRequest(CamelModel):
    station_name: str | None = Field(default=None, max_length=160)
    address: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    email: str | None = Field(default=None, max_length=255)
    petrol_price: Decimal | None = None
    diesel_price: Decimal | None = None
    lpg_price: Decimal | None = None
    cng_price: Decimal | None = None
    reward_multiplier: Decimal | None = None
    points_per_liter: Decimal | None = None


class BackfillResponse(CamelModel):
    total_users: int
    created: int
    updated: int
    errors: int
