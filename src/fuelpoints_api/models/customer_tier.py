from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column, utcnow


class TierEnum(str, Enum):
    BRONZE = "Bronze"
    SILVER = "Silver"
    GOLD = "Gold"
    PLATINUM = "Platinum"


class CustomerTier(Base):
    """Running points total per customer, derived from the transaction ledger."""

    __tablename__ = "customer_tiers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    tier = Column(String(16), nullable=False, default=TierEnum.BRONZE.value, server_default=TierEnum.BRONZE.value)
    points = Column(Integer, nullable=False, default=0, server_default="0")
    transactions = Column(Integer, nullable=False, default=0, server_default="0")
    last_activity = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", lazy="selectin")
