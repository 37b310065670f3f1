from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class RedemptionStatusEnum(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    COMPLETED = "Completed"


OUTSTANDING_REDEMPTION_STATUSES = (
    RedemptionStatusEnum.PENDING.value,
    RedemptionStatusEnum.APPROVED.value,
)

_OUTSTANDING_ONLY = "status IN ('Pending', 'Approved')"


class Redemption(Base):
    """Request to exchange points for a gift; one outstanding row per (user, gift)."""

    __tablename__ = "redemptions"
    __table_args__ = (
        Index(
            "uq_redemptions_outstanding",
            "user_id",
            "gift_id",
            unique=True,
            sqlite_where=text(_OUTSTANDING_ONLY),
            postgresql_where=text(_OUTSTANDING_ONLY),
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    gift_id = Column(UUID(as_uuid=True), ForeignKey("gifts.id", ondelete="CASCADE"), nullable=False, index=True)
    points_used = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1, server_default="1")
    redemption_code = Column(String(32), nullable=True)
    status = Column(String(16), nullable=False, default=RedemptionStatusEnum.PENDING.value, server_default=RedemptionStatusEnum.PENDING.value, index=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", lazy="selectin")
    gift = relationship("Gift", lazy="selectin")
