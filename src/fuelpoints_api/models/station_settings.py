from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Column, Numeric, String
from sqlalchemy.dialects.postgresql import UUID

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class StationSettings(Base):
    """Station-wide configuration; a single row is kept."""

    __tablename__ = "station_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    station_name = Column(String(160), nullable=False, default="Fuel Station", server_default="Fuel Station")
    address = Column(String(255), nullable=False, default="", server_default="")
    phone = Column(String(32), nullable=False, default="", server_default="")
    email = Column(String(255), nullable=False, default="", server_default="")
    petrol_price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    diesel_price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    lpg_price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    cng_price = Column(Numeric(10, 2), nullable=False, default=Decimal("0"), server_default="0")
    reward_multiplier = Column(Numeric(8, 3), nullable=False, default=Decimal("1"), server_default="1")
    points_per_liter = Column(Numeric(8, 3), nullable=False, default=Decimal("1"), server_default="1")
    created_at = created_at_column()
    updated_at = updated_at_column()
