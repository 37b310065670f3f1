from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fuelpoints_api.app import create_app
from fuelpoints_api.core.security import create_access_token, hash_password
from fuelpoints_api.db.base import Base
from fuelpoints_api.db.session import build_engine, get_session
from fuelpoints_api.models.user import User, UserRoleEnum


@pytest_asyncio.fixture
async def session_factory():
    import fuelpoints_api.models  # noqa: F401

    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def app_with_db(session_factory):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()


async def _create_user(
    session: AsyncSession,
    role: UserRoleEnum = UserRoleEnum.USER,
    *,
    email: str | None = None,
    name: str | None = None,
    password: str = "secret123",
) -> User:
    user = User(
        email=email or f"{role.value}-{uuid4().hex[:8]}@example.com",
        password_hash=hash_password(password),
        role=role.value,
        name=name,
    )
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
def make_user():
    return _create_user


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = create_access_token(user_id=user.id, role=user.role, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
