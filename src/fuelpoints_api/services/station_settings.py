"""Station-wide settings singleton."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.core.errors import ValidationFailed
from fuelpoints_api.models.station_settings import StationSettings


NUMERIC_FIELDS = (
    "petrol_price",
    "diesel_price",
    "lpg_price",
    "cng_price",
    "reward_multiplier",
    "points_per_liter",
)
TEXT_FIELDS = ("station_name", "address", "phone", "email")


class StationSettingsService:
    def __init__(self, db_session: AsyncSession) -> None:
        self._db = db_session

    async def get(self) -> StationSettings:
        """Return the settings row, creating defaults on first access."""

        stmt = select(StationSettings).order_by(StationSettings.created_at.asc()).limit(1)
        result = await self._db.execute(stmt)
        current = result.scalar_one_or_none()
        if current is not None:
            return current

        current = StationSettings()
        self._db.add(current)
        await self._db.flush()
        logger.info("Created default station settings", settings_id=str(current.id))
        return current

    async def update(self, changes: dict[str, Any]) -> StationSettings:
        current = await self.get()
        for field in NUMERIC_FIELDS:
            if changes.get(field) is None:
                continue
            value = Decimal(str(changes[field]))
            if value < 0:
                raise ValidationFailed(f"{field} must be zero or greater")
            setattr(current, field, value)
        for field in TEXT_FIELDS:
            if changes.get(field) is not None:
                setattr(current, field, str(changes[field]).strip())
        await self._db.flush()
        logger.info(
            "Station settings updated",
            fields=sorted(key for key, value in changes.items() if value is not None),
        )
        return current


__all__ = ["StationSettingsService"]
