from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column, utcnow


class FuelTypeEnum(str, Enum):
    PETROL = "PETROL"
    DIESEL = "DIESEL"
    LPG = "LPG"
    CNG = "CNG"


class PumpStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    MAINTENANCE = "MAINTENANCE"


class MaintenanceStatusEnum(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"


class Pump(Base):
    __tablename__ = "pumps"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(120), nullable=False, unique=True)
    fuel_types = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default=PumpStatusEnum.ACTIVE.value, server_default=PumpStatusEnum.ACTIVE.value)
    supervisor_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    customers = Column(Integer, nullable=False, default=0, server_default="0")
    last_start_reading = Column(Numeric(14, 3), nullable=False, default=0, server_default="0")
    last_end_reading = Column(Numeric(14, 3), nullable=False, default=0, server_default="0")
    last_reading_difference = Column(Numeric(14, 3), nullable=False, default=0, server_default="0")
    last_reading_at = Column(DateTime(timezone=True), nullable=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    supervisor = relationship("User", lazy="selectin")


class PumpMeterReading(Base):
    __tablename__ = "pump_meter_readings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    pump_id = Column(UUID(as_uuid=True), ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False, index=True)
    start_reading = Column(Numeric(14, 3), nullable=False)
    end_reading = Column(Numeric(14, 3), nullable=False)
    difference = Column(Numeric(14, 3), nullable=False)
    recorded_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    recorded_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class PumpMaintenanceReport(Base):
    __tablename__ = "pump_maintenance_reports"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    pump_id = Column(UUID(as_uuid=True), ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False, index=True)
    issue = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="", server_default="")
    reported_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(16), nullable=False, default=MaintenanceStatusEnum.PENDING.value, server_default=MaintenanceStatusEnum.PENDING.value)
    reported_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
