"""Assignment edges linking pumps, customers and gifts to their owners."""

from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, Column, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class AssignmentStatusEnum(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class GiftAssignmentStatusEnum(str, Enum):
    PENDING = "PENDING"
    AVAILABLE = "AVAILABLE"
    REDEEMED = "REDEEMED"
    EXPIRED = "EXPIRED"


class GiftAssigneeRoleEnum(str, Enum):
    EMPLOYER = "employer"
    USER = "user"


OUTSTANDING_GIFT_ASSIGNMENT_STATUSES = (
    GiftAssignmentStatusEnum.PENDING.value,
    GiftAssignmentStatusEnum.AVAILABLE.value,
)

_ACTIVE_ONLY = "status = 'ACTIVE'"
_OUTSTANDING_ONLY = "status IN ('PENDING', 'AVAILABLE')"


class PumpAssignment(Base):
    """Pump operated by an employer; one ACTIVE row per pump."""

    __tablename__ = "pump_assignments"
    __table_args__ = (
        Index(
            "uq_pump_assignments_active_pump",
            "pump_id",
            unique=True,
            sqlite_where=text(_ACTIVE_ONLY),
            postgresql_where=text(_ACTIVE_ONLY),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    pump_id = Column(UUID(as_uuid=True), ForeignKey("pumps.id", ondelete="CASCADE"), nullable=False, index=True)
    employer_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(16), nullable=False, default=AssignmentStatusEnum.ACTIVE.value, server_default=AssignmentStatusEnum.ACTIVE.value)
    assigned_at = created_at_column()
    updated_at = updated_at_column()

    pump = relationship("Pump", lazy="selectin")
    employer = relationship("User", foreign_keys=[employer_id], lazy="selectin")
    assigner = relationship("User", foreign_keys=[assigned_by], lazy="selectin")


class UserAssignment(Base):
    """Customer linked to an employer; one ACTIVE row per (user, employer)."""

    __tablename__ = "user_assignments"
    __table_args__ = (
        Index(
            "uq_user_assignments_active_pair",
            "user_id",
            "employer_id",
            unique=True,
            sqlite_where=text(_ACTIVE_ONLY),
            postgresql_where=text(_ACTIVE_ONLY),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    employer_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    status = Column(String(16), nullable=False, default=AssignmentStatusEnum.ACTIVE.value, server_default=AssignmentStatusEnum.ACTIVE.value)
    assigned_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", foreign_keys=[user_id], lazy="selectin")
    employer = relationship("User", foreign_keys=[employer_id], lazy="selectin")
    assigner = relationship("User", foreign_keys=[assigned_by], lazy="selectin")


class GiftAssignment(Base):
    """Gift offered to an employer or customer by a supervisor."""

    __tablename__ = "gift_assignments"
    __table_args__ = (
        Index(
            "uq_gift_assignments_outstanding",
            "gift_id",
            "assigned_to_id",
            "assigned_to_role",
            unique=True,
            sqlite_where=text(_OUTSTANDING_ONLY),
            postgresql_where=text(_OUTSTANDING_ONLY),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    gift_id = Column(UUID(as_uuid=True), ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_to_role = Column(String(16), nullable=False)
    assigned_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    points_required = Column(Integer, nullable=False, default=0)
    points_available = Column(Integer, nullable=False, default=0, server_default="0")
    is_available = Column(Boolean, nullable=False, default=False, server_default="false")
    status = Column(String(16), nullable=False, default=GiftAssignmentStatusEnum.PENDING.value, server_default=GiftAssignmentStatusEnum.PENDING.value)
    assigned_at = created_at_column()
    updated_at = updated_at_column()

    gift = relationship("Gift", lazy="selectin")
    assignee = relationship("User", foreign_keys=[assigned_to_id], lazy="selectin")
    assigner = relationship("User", foreign_keys=[assigned_by], lazy="selectin")
