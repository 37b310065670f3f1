from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field

from fuelpoints_api.models.pump import FuelTypeEnum, PumpStatusEnum
from fuelpoints_api.schemas.common import CamelModel, UserSummary


class PumpCreateRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=120)
    fuel_types: list[FuelTypeEnum] = Field(..., min_length=1)
    supervisor_id: UUID | None = Field(default=None, alias="supervisor")


class PumpUpdateRequest(CamelModel):
    name: str | None = Field(default=None, max_length=120)
    fuel_types: list[FuelTypeEnum] | None = None
    status: PumpStatusEnum | None = None
    supervisor_id: UUID | None = Field(default=None, alias="supervisor")
    customers: int | None = Field(default=None, ge=0)


class MeterReadingSnapshot(CamelModel):
    start_reading: float
    end_reading: float
    difference: float
    recorded_at: datetime | None = None


class PumpResponse(CamelModel):
    id: UUID
    name: str
    fuel_types: list[str]
    status: str
    supervisor_id: UUID | None = None
    supervisor: UserSummary | None = None
    customers: int
    last_meter_reading: MeterReadingSnapshot | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_pump(cls, pump) -> "PumpResponse":
        snapshot = None
        if pump.last_reading_at is not None:
            snapshot = MeterReadingSnapshot(
                start_reading=pump.last_start_reading,
                end_reading=pump.last_end_reading,
                difference=pump.last_reading_difference,
                recorded_at=pump.last_reading_at,
            )
        response = cls.model_validate(pump)
        response.last_meter_reading = snapshot
        return response


class AssignedPumpResponse(PumpResponse):
    assignment_id: UUID
    assigned_at: datetime
    assigned_by: UserSummary | None = None


class PumpStatsResponse(CamelModel):
    total_pumps: int
    active_pumps: int
    inactive_pumps: int
    maintenance_pumps: int
    total_gifts: int
    total_customers: int


class MeterReadingRequest(CamelModel):
    start_reading: Decimal = Field(..., ge=0)
    end_reading: Decimal = Field(..., ge=0)


class MeterReadingResponse(CamelModel):
    id: UUID
    pump_id: UUID
    start_reading: float
    end_reading: float
    difference: float
    recorded_by: UUID | None = None
    recorded_at: datetime


class MaintenanceRequest(CamelModel):
    issue: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)


class MaintenanceResponse(CamelModel):
    id: UUID
    pump_id: UUID
    issue: str
    description: str
    reported_by: UUID | None = None
    status: str
    reported_at: datetime
