"""Registration and login."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from fuelpoints_api.api.responses import envelope
from fuelpoints_api.core.security import create_access_token
from fuelpoints_api.db.session import get_session
from fuelpoints_api.models.user import User
from fuelpoints_api.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from fuelpoints_api.schemas.users import UserResponse
from fuelpoints_api.services.users import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])


def _auth_payload(user: User) -> AuthResponse:
    token = create_access_token(user_id=user.id, role=user.role, email=user.email)
    return AuthResponse(user=UserResponse.model_validate(user), access_token=token)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, session: AsyncSession = Depends(get_session)) -> dict:
    user = await UserService(session).register(
        email=payload.email,
        password=payload.password,
        role=payload.role,
        name=payload.name,
        phone=payload.phone,
    )
    await session.commit()
    return envelope(_auth_payload(user), message="User registered successfully")


@router.post("/login")
async def login(payload: LoginRequest, session: AsyncSession = Depends(get_session)) -> dict:
    user = await UserService(session).authenticate(
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return envelope(_auth_payload(user), message="Login successful")
