from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.responses import envelope
from fuelpoints_api.core.settings import settings
from fuelpoints_api.db.session import get_session


router = APIRouter()


@router.get("/health", summary="Service health check")
async def service_health(session: AsyncSession = Depends(get_session)) -> dict:
    await session.execute(text("SELECT 1"))
    return envelope(
        {"status": "ok", "service": settings.service_name, "environment": settings.environment},
        message="Fuel station API is running",
    )
