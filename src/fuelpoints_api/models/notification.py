from enum import Enum
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column


class NotificationTypeEnum(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategoryEnum(str, Enum):
    GIFT = "gift"
    TRANSACTION = "transaction"
    REDEMPTION = "redemption"
    PUMP = "pump"
    USER = "user"
    SYSTEM = "system"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (Index("ix_notifications_user_read_created", "user_id", "read", "created_at"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(16), nullable=False, default=NotificationTypeEnum.INFO.value, server_default=NotificationTypeEnum.INFO.value)
    category = Column(String(16), nullable=False, default=NotificationCategoryEnum.SYSTEM.value, server_default=NotificationCategoryEnum.SYSTEM.value)
    read = Column(Boolean, nullable=False, default=False, server_default="false")
    link = Column(String(255), nullable=True)
    metadata_json = Column("metadata", JSON, nullable=False, default=dict)
    created_at = created_at_column()
