import pytest
from httpx import ASGITransport, AsyncClient

from fuelpoints_api.core.security import decode_access_token
from fuelpoints_api.models.user import UserRoleEnum


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_register_then_login(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        register = await client.post(
            "/api/auth/register",
            json={"email": "Pat@Example.com", "password": "hunter22", "role": "employer", "name": "Pat"},
        )
        assert register.status_code == 201
        body = register.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["user"]["email"] == "pat@example.com"
        assert body["data"]["tokenType"] == "bearer"

        login = await client.post(
            "/api/auth/login",
            json={"email": "pat@example.com", "password": "hunter22", "role": "employer"},
        )
        assert login.status_code == 200
        claims = decode_access_token(login.json()["data"]["accessToken"])
        assert claims["role"] == "employer"
        assert claims["sub"] == body["data"]["user"]["id"]


@pytest.mark.asyncio
async def test_login_with_wrong_role_fails(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        await client.post(
            "/api/auth/register",
            json={"email": "sam@example.com", "password": "pw123456", "role": "user"},
        )
        response = await client.post(
            "/api/auth/login",
            json={"email": "sam@example.com", "password": "pw123456", "role": "admin"},
        )

    assert response.status_code == 401
    assert response.json()["success"] is False
    assert response.json()["message"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_duplicate_registration_is_rejected(app_with_db) -> None:
    app, _ = app_with_db
    payload = {"email": "dup@example.com", "password": "pw123456", "role": "user"}

    async with _client(app) as client:
        assert (await client.post("/api/auth/register", json=payload)).status_code == 201
        response = await client.post("/api/auth/register", json=payload)

    assert response.status_code == 400
    assert response.json()["message"] == "User with this email and role already exists"


@pytest.mark.asyncio
async def test_malformed_body_uses_envelope(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.post("/api/auth/register", json={"email": "x@example.com", "role": "pilot"})

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    assert isinstance(body["error"], list)


@pytest.mark.asyncio
async def test_protected_routes_require_token_and_role(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        customer = await make_user(session, UserRoleEnum.USER)
        await session.commit()

    async with _client(app) as client:
        anonymous = await client.get("/api/admin/dashboard/stats")
        forged = await client.get("/api/admin/dashboard/stats", headers={"Authorization": "Bearer not-a-jwt"})
        wrong_role = await client.get("/api/admin/dashboard/stats", headers=auth_headers(customer))

    assert anonymous.status_code == 401
    assert anonymous.json()["message"] == "Not authenticated"
    assert forged.status_code == 401
    assert forged.json()["message"] == "Could not validate credentials"
    assert wrong_role.status_code == 403
    assert wrong_role.json()["success"] is False


@pytest.mark.asyncio
async def test_unknown_route_is_enveloped(app_with_db) -> None:
    app, _ = app_with_db

    async with _client(app) as client:
        response = await client.get("/api/does-not-exist")

    assert response.status_code == 404
    assert response.json()["success"] is False
