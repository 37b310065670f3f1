from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from fuelpoints_api.models.assignment import (
    AssignmentStatusEnum,
    GiftAssigneeRoleEnum,
    GiftAssignmentStatusEnum,
)
from fuelpoints_api.schemas.common import CamelModel, PumpSummary, UserSummary
from fuelpoints_api.schemas.gifts import GiftResponse


class PumpAssignmentRequest(CamelModel):
    pump_id: UUID
    employer_id: UUID


class PumpAssignmentUpdateRequest(CamelModel):
    status: AssignmentStatusEnum | None = None
    employer_id: UUID | None = None


class PumpAssignmentResponse(CamelModel):
    id: UUID
    pump_id: UUID
    employer_id: UUID
    assigned_by: UUID | None = None
    status: str
    assigned_at: datetime
    pump: PumpSummary | None = None
    employer: UserSummary | None = None
    assigner: UserSummary | None = None


class UserAssignmentRequest(CamelModel):
    user_id: UUID
    employer_id: UUID


class UserAssignmentResponse(CamelModel):
    id: UUID
    user_id: UUID
    employer_id: UUID
    assigned_by: UUID | None = None
    status: str
    assigned_at: datetime
    user: UserSummary | None = None
    employer: UserSummary | None = None
    assigner: UserSummary | None = None


class GiftAssignmentRequest(CamelModel):
    gift_id: UUID
    assigned_to_id: UUID
    assigned_to_role: GiftAssigneeRoleEnum
    points_available: int = Field(default=0, ge=0)


class GiftAssignmentResponse(CamelModel):
    id: UUID
    gift_id: UUID
    assigned_to_id: UUID
    assigned_to_role: str
    assigned_by: UUID | None = None
    points_required: int
    points_available: int
    is_available: bool
    status: str
    assigned_at: datetime
    gift: GiftResponse | None = None
    assignee: UserSummary | None = None
    assigner: UserSummary | None = None


class GiftStatusRequest(CamelModel):
    status: GiftAssignmentStatusEnum


class GiftAvailabilityRequest(CamelModel):
    is_available: bool


class EmployerGiftResponse(CamelModel):
    assignment_id: UUID
    gift: GiftResponse | None = None
    points_available: int
    points_required: int
    is_available: bool
    status: str
    assigned_at: datetime
    assigned_by: UserSummary | None = None

    @classmethod
    def from_assignment(cls, assignment) -> "EmployerGiftResponse":
        return cls(
            assignment_id=assignment.id,
            gift=GiftResponse.model_validate(assignment.gift) if assignment.gift is not None else None,
            points_available=assignment.points_available,
            points_required=assignment.points_required,
            is_available=assignment.is_available,
            status=assignment.status,
            assigned_at=assignment.assigned_at,
            assigned_by=UserSummary.model_validate(assignment.assigner) if assignment.assigner is not None else None,
        )
