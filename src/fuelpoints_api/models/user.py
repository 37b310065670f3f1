from enum import Enum
from uuid import uuid4

from sqlalchemy import Column, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from fuelpoints_api.db.base import Base
from fuelpoints_api.models._mixins import created_at_column, updated_at_column


class UserRoleEnum(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    EMPLOYER = "employer"


class User(Base):
    """Account keyed by (email, role); the same email may hold several roles."""

    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", "role", name="uq_users_email_role"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(255), nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    name = Column(String(120), nullable=True)
    phone = Column(String(32), nullable=True)
    role = Column(String(length=16), nullable=False, default=UserRoleEnum.USER.value, server_default=UserRoleEnum.USER.value)
    created_at = created_at_column()
    updated_at = updated_at_column()
