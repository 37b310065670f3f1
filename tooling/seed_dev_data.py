"""Seed a small, repeatable fuel station dataset for local development."""

from __future__ import annotations

import argparse
import asyncio

from loguru import logger
from sqlalchemy import select

from fuelpoints_api.core.errors import ConflictError
from fuelpoints_api.db.session import async_session
from fuelpoints_api.models.assignment import AssignmentStatusEnum, PumpAssignment
from fuelpoints_api.models.gift import Gift
from fuelpoints_api.models.pump import Pump
from fuelpoints_api.models.user import User, UserRoleEnum
from fuelpoints_api.services.assignments import AssignmentService
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.pumps import PumpService
from fuelpoints_api.services.station_settings import StationSettingsService
from fuelpoints_api.services.users import UserService

ACCOUNTS = [
    ("admin@fuelpoints.local", UserRoleEnum.ADMIN, "Station Admin"),
    ("supervisor@fuelpoints.local", UserRoleEnum.SUPERVISOR, "Shift Supervisor"),
    ("employer@fuelpoints.local", UserRoleEnum.EMPLOYER, "Forecourt Employer"),
    ("customer@fuelpoints.local", UserRoleEnum.USER, "Regular Customer"),
]

PUMPS = [
    ("Pump 1", ["PETROL", "DIESEL"]),
    ("Pump 2", ["LPG"]),
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed development accounts, pumps and gifts")
    parser.add_argument("--password", default="changeme123", help="Password applied to newly created accounts.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Execute inside a transaction and roll back changes for verification.",
    )
    return parser.parse_args()


async def _seed(password: str, dry_run: bool) -> dict[str, int]:
    created = {"users": 0, "pumps": 0, "gifts": 0, "assignments": 0}

    async with async_session() as session:
        users = UserService(session)
        accounts: dict[UserRoleEnum, User] = {}
        for email, role, name in ACCOUNTS:
            account = await users.find_by_email(email, role)
            if account is None:
                account = await users.register(email=email, password=password, role=role, name=name)
                created["users"] += 1
            accounts[role] = account

        supervisor = accounts[UserRoleEnum.SUPERVISOR]
        employer = accounts[UserRoleEnum.EMPLOYER]
        admin = accounts[UserRoleEnum.ADMIN]

        pumps = PumpService(session)
        assignments = AssignmentService(session)
        for name, fuel_types in PUMPS:
            pump = (await session.execute(select(Pump).where(Pump.name == name))).scalar_one_or_none()
            if pump is None:
                pump = await pumps.create(name=name, fuel_types=fuel_types, supervisor_id=supervisor.id)
                created["pumps"] += 1

            active_stmt = select(PumpAssignment.id).where(
                PumpAssignment.pump_id == pump.id,
                PumpAssignment.status == AssignmentStatusEnum.ACTIVE.value,
            )
            if (await session.execute(active_stmt)).first() is None:
                await assignments.assign_pump(pump_id=pump.id, employer_id=employer.id, assigned_by=admin.id)
                created["assignments"] += 1

        try:
            await assignments.assign_user(
                user_id=accounts[UserRoleEnum.USER].id,
                employer_id=employer.id,
                assigned_by=supervisor.id,
            )
            created["assignments"] += 1
        except ConflictError:
            logger.info("Customer already linked to employer", employer_id=str(employer.id))

        gift_name = "Free Coffee"
        if (await session.execute(select(Gift.id).where(Gift.name == gift_name))).first() is None:
            await GiftService(session).create(
                name=gift_name,
                description="One regular coffee from the station shop",
                points_required=50,
                value=3,
                category="Beverage",
                stock=25,
            )
            created["gifts"] += 1

        await StationSettingsService(session).get()

        if dry_run:
            await session.rollback()
        else:
            await session.commit()
        return created


def main() -> int:
    args = parse_args()
    summary = asyncio.run(_seed(args.password, args.dry_run))
    logger.success("Development seed complete", **summary, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
