"""Pump inventory, meter readings and maintenance reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ConflictError, NotFound, PermissionDenied, ValidationFailed
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models._mixins import utcnow
from fuelpoints_api.models.assignment import AssignmentStatusEnum, PumpAssignment
from fuelpoints_api.models.gift import Gift
from fuelpoints_api.models.notification import NotificationCategoryEnum, NotificationTypeEnum
from fuelpoints_api.models.pump import (
    FuelTypeEnum,
    MaintenanceStatusEnum,
    Pump,
    PumpMaintenanceReport,
    PumpMeterReading,
    PumpStatusEnum,
)
from fuelpoints_api.models.user import User, UserRoleEnum
from fuelpoints_api.services.notifications import NotificationService
from fuelpoints_api.services.users import UserService


DUPLICATE_PUMP_MESSAGE = "Pump with this name already exists"
NOT_ASSIGNED_MESSAGE = "Pump is not assigned to this employer"


def parse_fuel_types(values: Iterable[str] | str) -> list[str]:
    if isinstance(values, str):
        values = [values]
    parsed: list[str] = []
    for value in values:
        try:
            fuel = FuelTypeEnum(str(value).strip().upper())
        except ValueError as exc:
            raise ValidationFailed(f"Invalid fuel type: {value}") from exc
        if fuel.value not in parsed:
            parsed.append(fuel.value)
    if not parsed:
        raise ValidationFailed("At least one fuel type is required")
    return parsed


@dataclass(slots=True)
class AssignedPump:
    pump: Pump
    assignment_id: UUID
    assigned_at: datetime
    assigned_by: Optional[User]


class PumpService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session
        self._notifications = NotificationService(db_session)

    async def list_pumps(self) -> list[Pump]:
        stmt = select(Pump).order_by(Pump.created_at.desc())
        return list((await self._db.execute(stmt)).scalars())

    async def get(self, pump_id: UUID) -> Pump:
        pump = await self._db.get(Pump, pump_id)
        if pump is None:
            raise NotFound("Pump not found")
        return pump

    async def create(
        self,
        *,
        name: str,
        fuel_types: Iterable[str] | str,
        supervisor_id: Optional[UUID] = None,
    ) -> Pump:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValidationFailed("Pump name is required")
        if await self._find_by_name(cleaned) is not None:
            raise ConflictError(DUPLICATE_PUMP_MESSAGE)
        if supervisor_id is not None:
            await UserService(self._db).get_with_role(supervisor_id, UserRoleEnum.SUPERVISOR, label="Supervisor")

        pump = Pump(
            name=cleaned,
            fuel_types=parse_fuel_types(fuel_types),
            status=PumpStatusEnum.ACTIVE.value,
            supervisor_id=supervisor_id,
        )
        self._db.add(pump)
        await flush_or_conflict(self._db, DUPLICATE_PUMP_MESSAGE)
        await self._db.refresh(pump, attribute_names=["supervisor"])
        logger.info("Pump created", pump_id=str(pump.id), name=pump.name)
        return pump

    async def update(self, pump_id: UUID, changes: dict[str, Any]) -> Pump:
        """Apply a partial update; a ``supervisor_id`` of ``None`` clears the supervisor."""

        pump = await self.get(pump_id)
        if changes.get("name") is not None:
            cleaned = changes["name"].strip()
            if not cleaned:
                raise ValidationFailed("Pump name is required")
            clash = await self._find_by_name(cleaned)
            if clash is not None and clash.id != pump.id:
                raise ConflictError(DUPLICATE_PUMP_MESSAGE)
            pump.name = cleaned
        if changes.get("fuel_types") is not None:
            pump.fuel_types = parse_fuel_types(changes["fuel_types"])
        if changes.get("status") is not None:
            try:
                pump.status = PumpStatusEnum(changes["status"]).value
            except ValueError as exc:
                raise ValidationFailed(f"Invalid pump status: {changes['status']}") from exc
        if "supervisor_id" in changes:
            supervisor_id = changes["supervisor_id"]
            if supervisor_id is not None:
                await UserService(self._db).get_with_role(supervisor_id, UserRoleEnum.SUPERVISOR, label="Supervisor")
            pump.supervisor_id = supervisor_id
        if changes.get("customers") is not None:
            if int(changes["customers"]) < 0:
                raise ValidationFailed("Customers cannot be negative")
            pump.customers = int(changes["customers"])

        await flush_or_conflict(self._db, DUPLICATE_PUMP_MESSAGE)
        await self._db.refresh(pump, attribute_names=["supervisor"])
        logger.info("Pump updated", pump_id=str(pump.id))
        return pump

    async def delete(self, pump_id: UUID) -> None:
        pump = await self.get(pump_id)
        await self._db.execute(delete(PumpAssignment).where(PumpAssignment.pump_id == pump_id))
        await self._db.execute(delete(PumpMeterReading).where(PumpMeterReading.pump_id == pump_id))
        await self._db.execute(delete(PumpMaintenanceReport).where(PumpMaintenanceReport.pump_id == pump_id))
        await self._db.delete(pump)
        await self._db.flush()
        logger.info("Pump deleted", pump_id=str(pump_id))

    async def pump_stats(self) -> dict[str, int]:
        counts = {status.value: 0 for status in PumpStatusEnum}
        stmt = select(Pump.status, func.count(Pump.id)).group_by(Pump.status)
        for status, count in (await self._db.execute(stmt)).all():
            counts[status] = int(count)

        gifts = (await self._db.execute(select(func.count(Gift.id)).where(Gift.active.is_(True)))).scalar_one()
        customers = (
            await self._db.execute(select(func.count(User.id)).where(User.role == UserRoleEnum.USER.value))
        ).scalar_one()
        return {
            "total_pumps": sum(counts.values()),
            "active_pumps": counts[PumpStatusEnum.ACTIVE.value],
            "inactive_pumps": counts[PumpStatusEnum.INACTIVE.value],
            "maintenance_pumps": counts[PumpStatusEnum.MAINTENANCE.value],
            "total_gifts": int(gifts),
            "total_customers": int(customers),
        }

    async def employer_pumps(self, employer_id: UUID) -> list[AssignedPump]:
        stmt = (
            select(PumpAssignment)
            .where(
                PumpAssignment.employer_id == employer_id,
                PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
            )
            .order_by(PumpAssignment.assigned_at.desc())
        )
        return [
            AssignedPump(
                pump=row.pump,
                assignment_id=row.id,
                assigned_at=row.assigned_at,
                assigned_by=row.assigner,
            )
            for row in (await self._db.execute(stmt)).scalars()
            if row.pump is not None
        ]

    async def record_meter_reading(
        self,
        *,
        employer_id: UUID,
        pump_id: UUID,
        start_reading: Decimal,
        end_reading: Decimal,
    ) -> PumpMeterReading:
        pump = await self._assigned_pump(employer_id, pump_id)
        if start_reading is None or end_reading is None:
            raise ValidationFailed("Start reading and end reading are required")
        if end_reading < start_reading:
            raise ValidationFailed("End reading cannot be less than start reading")

        recorded_at = utcnow()
        difference = end_reading - start_reading
        reading = PumpMeterReading(
            pump_id=pump.id,
            start_reading=start_reading,
            end_reading=end_reading,
            difference=difference,
            recorded_by=employer_id,
            recorded_at=recorded_at,
        )
        self._db.add(reading)
        pump.last_start_reading = start_reading
        pump.last_end_reading = end_reading
        pump.last_reading_difference = difference
        pump.last_reading_at = recorded_at
        await self._db.flush()
        logger.info(
            "Meter reading recorded",
            pump_id=str(pump.id),
            employer_id=str(employer_id),
            difference=str(difference),
        )
        return reading

    async def report_maintenance(
        self,
        *,
        employer_id: UUID,
        pump_id: UUID,
        issue: str,
        description: str = "",
    ) -> PumpMaintenanceReport:
        if not (issue or "").strip():
            raise ValidationFailed("Issue is required")
        pump = await self._assigned_pump(employer_id, pump_id)

        report = PumpMaintenanceReport(
            pump_id=pump.id,
            issue=issue.strip(),
            description=(description or "").strip(),
            reported_by=employer_id,
            status=MaintenanceStatusEnum.PENDING.value,
        )
        self._db.add(report)
        pump.status = PumpStatusEnum.MAINTENANCE.value
        await self._db.flush()
        logger.info("Maintenance reported", pump_id=str(pump.id), report_id=str(report.id))

        if pump.supervisor_id is not None:
            async with self._notifications.best_effort("maintenance_notification", pump_id=str(pump.id)):
                await self._notifications.notify(
                    pump.supervisor_id,
                    title="Pump Maintenance Reported",
                    message=f'Maintenance was reported for pump "{pump.name}": {report.issue}',
                    kind=NotificationTypeEnum.WARNING,
                    category=NotificationCategoryEnum.PUMP,
                    link="/supervisor/dashboard",
                    metadata={"pumpId": pump.id, "reportId": report.id},
                )
        return report

    async def _assigned_pump(self, employer_id: UUID, pump_id: UUID) -> Pump:
        pump = await self.get(pump_id)
        stmt = select(PumpAssignment.id).where(
            PumpAssignment.pump_id == pump_id,
            PumpAssignment.employer_id == employer_id,
            PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        if (await self._db.execute(stmt)).first() is None:
            raise PermissionDenied(NOT_ASSIGNED_MESSAGE)
        return pump

    async def _find_by_name(self, name: str) -> Pump | None:
        result = await self._db.execute(select(Pump).where(Pump.name == name))
        return result.scalar_one_or_none()


__all__ = ["AssignedPump", "DUPLICATE_PUMP_MESSAGE", "PumpService", "parse_fuel_types"]
