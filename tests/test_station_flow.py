import pytest
from httpx import ASGITransport, AsyncClient

from fuelpoints_api.models.user import UserRoleEnum
from fuelpoints_api.services.gifts import GiftService
from fuelpoints_api.services.tiers import TierService


@pytest.mark.asyncio
async def test_sale_to_redemption_flow(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        supervisor = await make_user(session, UserRoleEnum.SUPERVISOR)
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        customer = await make_user(session, UserRoleEnum.USER, email="rider@example.com")
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        pump_resp = await client.post(
            "/api/admin/pumps",
            json={"name": "Pump 9", "fuelTypes": ["PETROL", "DIESEL"], "supervisor": str(supervisor.id)},
            headers=auth_headers(admin),
        )
        assert pump_resp.status_code == 201
        pump = pump_resp.json()["data"]
        assert pump["supervisor"]["id"] == str(supervisor.id)

        assign_resp = await client.post(
            "/api/admin/assign-pump",
            json={"pumpId": pump["id"], "employerId": str(employer.id)},
            headers=auth_headers(admin),
        )
        assert assign_resp.status_code == 201
        assert assign_resp.json()["data"]["status"] == "ACTIVE"

        link_resp = await client.post(
            "/api/supervisor/assign-user",
            json={"userId": str(customer.id), "employerId": str(employer.id)},
            headers=auth_headers(supervisor),
        )
        assert link_resp.status_code == 201

        invoice = (
            await client.get("/api/employer/transactions/next-invoice-number", headers=auth_headers(employer))
        ).json()["data"]["invoiceNumber"]
        assert invoice == "I-01"

        sale_resp = await client.post(
            "/api/employer/transactions",
            json={
                "pumpId": pump["id"],
                "amount": "3150.00",
                "liters": "30",
                "userId": str(customer.id),
                "invoiceNumber": invoice,
                "payment": "Card",
            },
            headers=auth_headers(employer),
        )
        assert sale_resp.status_code == 201
        sale = sale_resp.json()["data"]
        assert sale["rewardPoints"] == 30
        assert sale["employerId"] == str(employer.id)

        listing = await client.get("/api/employer/transactions?page=1&limit=10", headers=auth_headers(employer))
        assert listing.json()["pagination"] == {"total": 1, "page": 1, "limit": 10, "pages": 1}

        balance = await client.get("/api/user/reward-points", headers=auth_headers(customer))
        assert balance.json()["data"] == {"totalEarned": 30, "totalRedeemed": 0, "availableBalance": 30}

        gift_resp = await client.post(
            "/api/gifts",
            json={
                "name": "Coffee",
                "description": "Small coffee",
                "pointsRequired": 20,
                "value": 2,
                "category": "Beverage",
                "stock": 2,
            },
            headers=auth_headers(supervisor),
        )
        assert gift_resp.status_code == 201
        gift_id = gift_resp.json()["data"]["id"]

        offer_resp = await client.post(
            "/api/supervisor/assign-gift",
            json={"giftId": gift_id, "assignedToId": str(customer.id), "assignedToRole": "user"},
            headers=auth_headers(supervisor),
        )
        assert offer_resp.status_code == 201
        assert offer_resp.json()["data"]["status"] == "AVAILABLE"

        offers = await client.get("/api/user/available-gifts", headers=auth_headers(customer))
        assert [item["gift"]["id"] for item in offers.json()["data"]] == [gift_id]

        pending = await client.get("/api/redemptions?status=Pending", headers=auth_headers(supervisor))
        redemptions = pending.json()["data"]
        assert len(redemptions) == 1
        assert redemptions[0]["userId"] == str(customer.id)

        approve = await client.put(
            f"/api/redemptions/{redemptions[0]['id']}",
            json={"status": "Approved"},
            headers=auth_headers(supervisor),
        )
        assert approve.status_code == 200
        assert approve.json()["message"] == "Redemption approved successfully"

        balance = await client.get("/api/user/reward-points", headers=auth_headers(customer))
        assert balance.json()["data"]["totalRedeemed"] == 20
        assert balance.json()["data"]["availableBalance"] == 10

        reject = await client.put(
            f"/api/redemptions/{redemptions[0]['id']}",
            json={"status": "Rejected"},
            headers=auth_headers(supervisor),
        )
        assert reject.status_code == 400
        assert reject.json()["message"] == "Cannot transition redemption from Approved to Rejected"

        inbox = await client.get("/api/notifications", headers=auth_headers(customer))
        titles = [item["title"] for item in inbox.json()["data"]["notifications"]]
        assert "Redemption Approved" in titles
        assert "New Gift Assigned" in titles


@pytest.mark.asyncio
async def test_employer_cannot_read_unassigned_pump(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        employer = await make_user(session, UserRoleEnum.EMPLOYER)
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        pump = (
            await client.post(
                "/api/admin/pumps",
                json={"name": "Spare", "fuelTypes": ["CNG"]},
                headers=auth_headers(admin),
            )
        ).json()["data"]

        response = await client.post(
            f"/api/employer/pumps/{pump['id']}/meter-reading",
            json={"startReading": 10, "endReading": 20},
            headers=auth_headers(employer),
        )

    assert response.status_code == 403
    assert response.json()["message"] == "Pump is not assigned to this employer"


@pytest.mark.asyncio
async def test_customer_cannot_choose_points_used(app_with_db, make_user, auth_headers) -> None:
    app, session_factory = app_with_db

    async with session_factory() as session:
        admin = await make_user(session, UserRoleEnum.ADMIN)
        customer = await make_user(session, UserRoleEnum.USER)
        await TierService(session).apply_transaction(customer.id, 600)
        gift = await GiftService(session).create(
            name="Car Wash",
            description="Full service wash",
            points_required=500,
            value=10,
            category="Other",
            stock=1,
        )
        await session.commit()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        created = await client.post(
            "/api/redemptions",
            json={"giftId": str(gift.id), "pointsUsed": 1},
            headers=auth_headers(customer),
        )
        assert created.status_code == 201
        assert created.json()["data"]["pointsUsed"] == 500

        approve = await client.put(
            f"/api/redemptions/{created.json()['data']['id']}",
            json={"status": "Approved"},
            headers=auth_headers(admin),
        )
        assert approve.status_code == 200

    async with session_factory() as session:
        assert await TierService(session).get_points(customer.id) == 100
