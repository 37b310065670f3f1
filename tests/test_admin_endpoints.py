from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from fuelpoints_api.models.transaction import FuelTransaction
from fuelpoints_api.models.user import UserRoleEnum


def _client(app) -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_settings_round_trip_and_validation(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        await session.commit()

    async with _client(app) as client:
        defaults = await client.get("/api/admin/settings", headers=auth_headers(admin))
        assert defaults.status_code == 200
        assert defaults.json()["data"]["pointsPerLiter"] == 1.0

        updated = await client.post(
            "/api/admin/settings",
            json={"stationName": "Harbour Fuel", "pointsPerLiter": "1.5", "rewardMultiplier": "2"},
            headers=auth_headers(admin),
        )
        assert updated.status_code == 200
        data = updated.json()["data"]
        assert data["stationName"] == "Harbour Fuel"
        assert data["pointsPerLiter"] == 1.5
        assert data["rewardMultiplier"] == 2.0

        negative = await client.post(
            "/api/admin/settings",
            json={"petrolPrice": "-1"},
            headers=auth_headers(admin),
        )
        assert negative.status_code == 400
        assert negative.json()["message"] == "petrol_price must be zero or greater"


@pytest.mark.asyncio
async def test_pump_stats_and_status_update(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        await make_user(session, UserRoleEnum.USER)
        await session.commit()

    async with _client(app) as client:
        headers = auth_headers(admin)
        first = (await client.post("/api/admin/pumps", json={"name": "A1", "fuelTypes": ["PETROL"]}, headers=headers)).json()
        await client.post("/api/admin/pumps", json={"name": "A2", "fuelTypes": ["LPG"]}, headers=headers)

        duplicate = await client.post("/api/admin/pumps", json={"name": "A1", "fuelTypes": ["CNG"]}, headers=headers)
        assert duplicate.status_code == 400
        assert duplicate.json()["message"] == "Pump with this name already exists"

        await client.put(f"/api/admin/pumps/{first['data']['id']}", json={"status": "INACTIVE"}, headers=headers)

        stats = (await client.get("/api/admin/pumps/stats", headers=headers)).json()["data"]

    assert stats == {
        "totalPumps": 2,
        "activePumps": 1,
        "inactivePumps": 1,
        "maintenancePumps": 0,
        "totalGifts": 0,
        "totalCustomers": 1,
    }


@pytest.mark.asyncio
async def test_backfill_endpoint_reports_counts(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        customer = await make_user(session)
        session.add(FuelTransaction(user_id=customer.id, amount=Decimal("2500"), reward_points=2500))
        await session.commit()

    async with _client(app) as client:
        response = await client.post("/api/admin/backfill-customer-tiers", headers=auth_headers(admin))
        tiers = await client.get("/api/admin/customer-tiers", headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["data"] == {"totalUsers": 1, "created": 1, "updated": 0, "errors": 0}
    assert response.json()["message"] == "Backfill complete: 1 created, 0 updated, 0 errors"
    rows = tiers.json()["data"]
    assert len(rows) == 1
    assert rows[0]["tier"] == "Silver"
    assert rows[0]["points"] == 2500
