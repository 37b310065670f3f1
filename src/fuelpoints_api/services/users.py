"""Account registration, authentication and user administration."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import (
    AuthenticationFailed,
    ConflictError,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from fuelpoints_api.core.security import hash_password, verify_password
from fuelpoints_api.db.session import flush_or_conflict
from fuelpoints_api.models.assignment import (
    AssignmentStatusEnum,
    GiftAssignment,
    PumpAssignment,
    UserAssignment,
)
from fuelpoints_api.models.customer_tier import CustomerTier
from fuelpoints_api.models.pump import Pump
from fuelpoints_api.models.redemption import Redemption
from fuelpoints_api.models.transaction import FuelTransaction, TransactionStatusEnum
from fuelpoints_api.models.user import User, UserRoleEnum
from fuelpoints_api.services.notifications import NotificationService
from fuelpoints_api.services.rewards import effective_reward_points
from fuelpoints_api.services.tiers import TierService, TierSnapshot, determine_tier


EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.[A-Za-z]{2,}$")
DUPLICATE_ACCOUNT_MESSAGE = "User with this email and role already exists"


def normalize_email(value: str) -> str:
    email = (value or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed("Please enter a valid email address")
    return email


def parse_role(value: str | UserRoleEnum) -> UserRoleEnum:
    try:
        return UserRoleEnum(value)
    except ValueError as error:
        raise ValidationFailed("Invalid role. Must be user, admin, supervisor, or employer") from error


@dataclass(slots=True)
class UserWithTier:
    user: User
    tier: TierSnapshot


@dataclass(slots=True)
class EmployerCustomer:
    user: User
    transaction_count: int
    reward_points: int
    tier: str


@dataclass(slots=True)
class CustomerLinkResult:
    user: User
    created_user: bool
    created_link: bool


class UserService:
    """Identity store keyed by (email, role)."""

    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def register(
        self,
        *,
        email: str,
        password: str,
        role: str | UserRoleEnum,
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> User:
        normalized = normalize_email(email)
        role_enum = parse_role(role)
        if not password:
            raise ValidationFailed("Email, password, and role are required")

        if await self.find_by_email(normalized, role_enum) is not None:
            raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)

        user = User(
            email=normalized,
            password_hash=hash_password(password),
            role=role_enum.value,
            name=name,
            phone=phone,
        )
        self._db.add(user)
        await flush_or_conflict(self._db, DUPLICATE_ACCOUNT_MESSAGE)
        logger.info("User registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate(self, *, email: str, password: str, role: str | UserRoleEnum) -> User:
        role_enum = parse_role(role)
        user = await self.find_by_email(normalize_email(email), role_enum)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Login rejected", role=role_enum.value)
            raise AuthenticationFailed("Invalid credentials")
        logger.info("Login succeeded", user_id=str(user.id), role=user.role)
        return user

    async def find_by_email(self, email: str, role: UserRoleEnum) -> User | None:
        stmt = select(User).where(User.email == email, User.role == role.value)
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID) -> User:
        user = await self._db.get(User, user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def get_with_role(self, user_id: UUID, role: UserRoleEnum, *, label: str | None = None) -> User:
        """Load a user and insist on its role; a mismatch is an input error."""

        label = label or role.value.capitalize()
        user = await self._db.get(User, user_id)
        if user is None:
            raise NotFound(f"{label} not found")
        if user.role != role.value:
            raise ValidationFailed(f"User role does not match. Expected {role.value}, got {user.role}")
        return user

    async def list_users(self, role: Optional[UserRoleEnum] = None) -> list[UserWithTier]:
        stmt = select(User).order_by(User.created_at.desc())
        if role is not None:
            stmt = stmt.where(User.role == role.value)
        users = list((await self._db.execute(stmt)).scalars())

        tiers = TierService(self._db)
        return [UserWithTier(user=user, tier=await tiers.snapshot(user.id)) for user in users]

    async def update_user(self, user_id: UUID, changes: dict[str, Any]) -> User:
        user = await self.get_user(user_id)
        if changes.get("role") is not None and changes["role"] != user.role:
            raise ValidationFailed("Role cannot be changed")

        if changes.get("email") is not None:
            email = normalize_email(changes["email"])
            clash = await self.find_by_email(email, UserRoleEnum(user.role))
            if clash is not None and clash.id != user.id:
                raise ConflictError(DUPLICATE_ACCOUNT_MESSAGE)
            user.email = email
        if changes.get("name") is not None:
            user.name = changes["name"].strip() or None
        if changes.get("phone") is not None:
            user.phone = changes["phone"].strip() or None
        password = changes.get("password")
        if password is not None and password.strip():
            user.password_hash = hash_password(password)

        await flush_or_conflict(self._db, DUPLICATE_ACCOUNT_MESSAGE)
        logger.info("User updated", user_id=str(user.id))
        return user

    async def delete_user(self, user_id: UUID) -> None:
        """Delete a user and every row that references it."""

        user = await self.get_user(user_id)
        await self._db.execute(
            delete(UserAssignment).where(
                or_(UserAssignment.user_id == user_id, UserAssignment.employer_id == user_id)
            )
        )
        await self._db.execute(delete(PumpAssignment).where(PumpAssignment.employer_id == user_id))
        await self._db.execute(delete(GiftAssignment).where(GiftAssignment.assigned_to_id == user_id))
        await self._db.execute(delete(CustomerTier).where(CustomerTier.user_id == user_id))
        await self._db.execute(delete(Redemption).where(Redemption.user_id == user_id))
        await self._db.execute(delete(FuelTransaction).where(FuelTransaction.user_id == user_id))
        await NotificationService(self._db).delete_for_user(user_id)
        await self._db.execute(update(Pump).where(Pump.supervisor_id == user_id).values(supervisor_id=None))
        await self._db.delete(user)
        await self._db.flush()
        logger.info("User deleted", user_id=str(user_id), role=user.role)

    async def list_employer_customers(self, employer_id: UUID) -> list[EmployerCustomer]:
        """Customers linked to an employer, with points earned at that employer."""

        stmt = (
            select(User)
            .join(UserAssignment, UserAssignment.user_id == User.id)
            .where(
                UserAssignment.employer_id == employer_id,
                UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
                User.role == UserRoleEnum.USER.value,
            )
            .order_by(User.created_at.desc())
        )
        customers = list((await self._db.execute(stmt)).scalars().unique())

        rows: list[EmployerCustomer] = []
        for customer in customers:
            tx_stmt = select(FuelTransaction).where(
                FuelTransaction.user_id == customer.id,
                FuelTransaction.employer_id == employer_id,
                FuelTransaction.status == TransactionStatusEnum.COMPLETED.value,
            )
            transactions = list((await self._db.execute(tx_stmt)).scalars())
            points = sum(effective_reward_points(item) for item in transactions)
            rows.append(
                EmployerCustomer(
                    user=customer,
                    transaction_count=len(transactions),
                    reward_points=points,
                    tier=determine_tier(points).value,
                )
            )
        return rows

    async def link_customer_to_employer(
        self,
        *,
        employer_id: UUID,
        email: str,
        password: str,
        name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> CustomerLinkResult:
        """Create (or reuse) a customer account and link it to the employer."""

        normalized = normalize_email(email)
        if not password:
            raise ValidationFailed("Email and password are required")

        user = await self.find_by_email(normalized, UserRoleEnum.USER)
        created_user = user is None
        if user is None:
            user = await self.register(
                email=normalized,
                password=password,
                role=UserRoleEnum.USER,
                name=name,
                phone=phone,
            )

        existing = await self._active_link(user.id, employer_id)
        if existing is not None:
            return CustomerLinkResult(user=user, created_user=created_user, created_link=False)

        self._db.add(
            UserAssignment(
                user_id=user.id,
                employer_id=employer_id,
                assigned_by=employer_id,
                status=AssignmentStatusEnum.ACTIVE.value,
            )
        )
        await flush_or_conflict(self._db, "User is already assigned to this employer")
        logger.info(
            "Customer linked to employer",
            user_id=str(user.id),
            employer_id=str(employer_id),
            created_user=created_user,
        )
        return CustomerLinkResult(user=user, created_user=created_user, created_link=True)

    async def get_employer_customer(self, employer_id: UUID, user_id: UUID) -> User:
        """A customer the employer may manage: role user and actively linked."""

        user = await self.get_user(user_id)
        if user.role != UserRoleEnum.USER.value:
            raise PermissionDenied('Can only manage users with role "user"')
        if await self._active_link(user_id, employer_id) is None:
            raise PermissionDenied("User is not assigned to this employer")
        return user

    async def count_non_admin_users(self) -> int:
        stmt = select(func.count(User.id)).where(User.role != UserRoleEnum.ADMIN.value)
        return int((await self._db.execute(stmt)).scalar_one())

    async def _active_link(self, user_id: UUID, employer_id: UUID) -> UserAssignment | None:
        stmt = select(UserAssignment).where(
            UserAssignment.user_id == user_id,
            UserAssignment.employer_id == employer_id,
            UserAssignment.status == AssignmentStatusEnum.ACTIVE.value,
        )
        result = await self._db.execute(stmt)
        return result.scalar_one_or_none()


__all__ = [
    "CustomerLinkResult",
    "EmployerCustomer",
    "UserService",
    "UserWithTier",
    "normalize_email",
    "parse_role",
]
