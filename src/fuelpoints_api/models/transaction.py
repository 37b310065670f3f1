from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class TransactionStatusEnum(str, Enum):
    COMPLETED = "Completed"
    PENDING = "Pending"
    CANCELLED = "Cancelled"


class PaymentMethodEnum(str, Enum):
    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    CREDIT = "Credit"


class TransactionTypeEnum(str, Enum):
    FUEL = "fuel"
    GIFT = "gift"
    OTHER = "other"


class FuelTransaction(Base):
    """Ledger entry for a sale; ``reward_points`` is fixed when the row is written."""

    __tablename__ = "fuel_transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    invoice_number = Column(String(64), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    liters = Column(Numeric(12, 3), nullable=True)
    payment = Column(String(16), nullable=False, default=PaymentMethodEnum.CASH.value, server_default=PaymentMethodEnum.CASH.value)
    type = Column(String(16), nullable=False, default=TransactionTypeEnum.FUEL.value, server_default=TransactionTypeEnum.FUEL.value)
    status = Column(String(16), nullable=False, default=TransactionStatusEnum.COMPLETED.value, server_default=TransactionStatusEnum.COMPLETED.value, index=True)
    customer_email = Column(String(255), nullable=False, default="", server_default="")
    customer_name = Column(String(120), nullable=False, default="", server_default="")
    reward_points = Column(Integer, nullable=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    pump_id = Column(UUID(as_uuid=True), ForeignKey("pumps.id", ondelete="SET NULL"), nullable=True, index=True)
    employer_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = created_at_column()
    updated_at = updated_at_column()

    user = relationship("User", foreign_keys=[user_id], lazy="selectin")
    pump = relationship("Pump", lazy="selectin")
    employer = relationship("User", foreign_keys=[employer_id], lazy="selectin")
