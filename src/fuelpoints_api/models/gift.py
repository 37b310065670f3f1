from enum import Enum
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class GiftCategoryEnum(str, Enum):
    BEVERAGE = "Beverage"
    FOOD = "Food"
    ELECTRONICS = "Electronics"
    VOUCHERS = "Vouchers"
    OTHER = "Other"


class Gift(Base):
    __tablename__ = "gifts"
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_gifts_stock_non_negative"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(160), nullable=False, unique=True)
    description = Column(Text, nullable=False, default="", server_default="")
    points_required = Column(Integer, nullable=False, default=0)
    value = Column(Integer, nullable=False, default=0)
    category = Column(String(32), nullable=False, default=GiftCategoryEnum.OTHER.value)
    stock = Column(Integer, nullable=False, default=0, server_default="0")
    active = Column(Boolean, nullable=False, default=True, server_default="true")
    created_at = created_at_column()
    updated_at = updated_at_column()
