"""HTTP surface: manual billing triggers and bill extension."""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from propman.api.deps import get_bill_repository
from propman.core.security import create_access_token
from propman.main import app
from propman.models.bill import BillStatus


def auth_header(role: str = "manager", **kwargs) -> dict:
    return {"Authorization": f"Bearer {create_access_token(42, role=role, **kwargs)}"}


@pytest_asyncio.fixture
async def client(repository):
    app.dependency_overrides[get_bill_repository] = lambda: repository
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


class TestScriptTriggers:

    async def test_penalties_requires_token(self, client):
        response = await client.post("/api/v1/scripts/penalties")

        assert response.status_code == 401

    async def test_invalid_token_rejected(self, client):
        response = await client.post(
            "/api/v1/scripts/penalties",
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == 401

    async def test_expired_token_rejected(self, client):
        response = await client.post(
            "/api/v1/scripts/penalties",
            headers=auth_header(expires_delta=timedelta(minutes=-5)),
        )

        assert response.status_code == 401

    async def test_tenant_role_forbidden(self, client):
        response = await client.post("/api/v1/scripts/renew-bills", headers=auth_header("tenant"))

        assert response.status_code == 403

    async def test_token_without_role_forbidden(self, client):
        headers = {"Authorization": f"Bearer {create_access_token(42)}"}

        response = await client.post("/api/v1/scripts/penalties", headers=headers)

        assert response.status_code == 403

    async def test_penalties_marks_overdue_bills(self, client, add_issued_bill, fetch_bill):
        yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)
        bill = await add_issued_bill(yesterday, "B-TEST-001")

        response = await client.post("/api/v1/scripts/penalties", headers=auth_header("manager"))

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["marked_overdue"] == 1
        assert body["data"]["bill_numbers"] == ["B-TEST-001"]
        assert (await fetch_bill(bill.bill_id)).status == BillStatus.OVERDUE.value

    async def test_role_is_normalized(self, client):
        response = await client.post("/api/v1/scripts/penalties", headers=auth_header("  Owner "))

        assert response.status_code == 200
        assert response.json()["data"]["marked_overdue"] == 0

    async def test_renew_bills_generates_from_templates(self, client, add_template, fetch_bill):
        created_at = datetime.now(timezone.utc) - timedelta(days=3)
        template = await add_template(created_at=created_at, billing_cycle="WEEKLY")

        response = await client.post("/api/v1/scripts/renew-bills", headers=auth_header("owner"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["templates"] == 1
        assert data["created"] == 1
        assert data["failed"] == 0
        assert (await fetch_bill(template.bill_id)).bills_cycled == 1

    async def test_job_status_lists_registered_jobs(self, client):
        response = await client.get("/api/v1/scripts/jobs", headers=auth_header())

        assert response.status_code == 200
        assert isinstance(response.json(), list)


class TestExtendBill:

    async def test_extend_overdue_bill(self, client, add_issued_bill):
        bill = await add_issued_bill(
            date(2026, 1, 20), "B-TEST-100", status=BillStatus.OVERDUE.value
        )

        response = await client.post(
            f"/api/v1/bills/{bill.bill_id}/extend",
            json={"penalty_amount": "15000", "days": 7},
            headers=auth_header(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "2026-01-27" in body["message"]
        assert body["data"]["status"] == BillStatus.ISSUED.value
        assert body["data"]["due_date"] == "2026-01-27"
        assert Decimal(str(body["data"]["penalty_amount"])) == Decimal("15000")

    async def test_extend_uses_default_days(self, client, add_issued_bill):
        bill = await add_issued_bill(
            date(2026, 1, 20), "B-TEST-101", status=BillStatus.OVERDUE.value
        )

        response = await client.post(
            f"/api/v1/bills/{bill.bill_id}/extend", json={}, headers=auth_header()
        )

        assert response.status_code == 200
        assert response.json()["data"]["due_date"] == "2026-01-25"

    async def test_extend_issued_bill_is_bad_request(self, client, add_issued_bill):
        bill = await add_issued_bill(date(2026, 1, 20), "B-TEST-102")

        response = await client.post(
            f"/api/v1/bills/{bill.bill_id}/extend", json={}, headers=auth_header()
        )

        assert response.status_code == 400
        assert "overdue" in response.json()["detail"]

    async def test_extend_unknown_bill(self, client):
        response = await client.post("/api/v1/bills/424242/extend", json={}, headers=auth_header())

        assert response.status_code == 404

    @pytest.mark.parametrize("payload", [
        {"penalty_amount": "-1"},
        {"days": 0},
        {"days": 365},
    ])
    async def test_extend_validates_payload(self, client, add_issued_bill, payload):
        bill = await add_issued_bill(
            date(2026, 1, 20), "B-TEST-103", status=BillStatus.OVERDUE.value
        )

        response = await client.post(
            f"/api/v1/bills/{bill.bill_id}/extend", json=payload, headers=auth_header()
        )

        assert response.status_code == 422

    async def test_extend_requires_manager_role(self, client, add_issued_bill):
        bill = await add_issued_bill(
            date(2026, 1, 20), "B-TEST-104", status=BillStatus.OVERDUE.value
        )

        response = await client.post(
            f"/api/v1/bills/{bill.bill_id}/extend", json={}, headers=auth_header("tenant")
        )

        assert response.status_code == 403


class TestDependencies:

    def test_bill_repository_uses_application_session_factory(self):
        from propman.database import async_session_factory
        from propman.services.bill_repository import SQLAlchemyBillRepository

        repository = get_bill_repository()

        assert isinstance(repository, SQLAlchemyBillRepository)
        assert repository.session_factory is async_session_factory
