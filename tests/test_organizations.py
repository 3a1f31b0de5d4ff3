"""
Organization Tests

Public org-code lookup and dashboard settings.
"""
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from app.models import CheckIn, Organization, Payment, PaymentMethod, StaffRole
from app.services.email_service import email_service


class TestOrgCodeLookup:
    """Unauthenticated lookup used by the member app before sign-in"""

    @pytest.mark.asyncio
    async def test_lookup_is_case_insensitive(self, client, organization):
        response = await client.get("/api/v1/organizations/lookup", params={"code": "  lotus-temple1 "})

        assert response.status_code == 200
        rows = response.json()
        assert len(rows) == 1
        assert rows[0]["name"] == "Lotus Temple"
        assert rows[0]["org_code"] == "LOTUS-TEMPLE1"
        assert rows[0]["is_active"] is True

    @pytest.mark.asyncio
    async def test_lookup_unknown_code_is_empty(self, client, organization):
        response = await client.get("/api/v1/organizations/lookup", params={"code": "NOPE-0000"})

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_lookup_returns_inactive_organizations(self, client, db_session):
        db_session.add(Organization(
            name="Closed Temple",
            slug="closed-temple",
            org_code="CLOSED-1",
            is_active=False,
            settings={},
        ))
        await db_session.commit()

        response = await client.get("/api/v1/organizations/lookup", params={"code": "closed-1"})

        assert response.json()[0]["is_active"] is False

    @pytest.mark.asyncio
    async def test_public_organization_by_id(self, client, organization):
        found = await client.get(f"/api/v1/organizations/{organization.id}")
        missing = await client.get("/api/v1/organizations/9999")

        assert found.status_code == 200
        assert found.json()["primary_color"] == "#4A2040"
        assert "settings" not in found.json()
        assert missing.status_code == 404


class TestOrganizationSettings:
    """Branding and kiosk settings (OWNER / ADMIN)"""

    @pytest.mark.asyncio
    async def test_get_own_organization(self, client, organization, make_staff):
        _, headers = await make_staff(organization, StaffRole.VIEWER)

        response = await client.get("/api/v1/organization", headers=headers)

        assert response.status_code == 200
        assert response.json()["id"] == organization.id

    @pytest.mark.asyncio
    async def test_update_branding_keeps_other_settings(self, client, organization, admin_headers):
        response = await client.patch(
            "/api/v1/organization/settings",
            json={"name": "Lotus Temple of Austin", "primary_color": "#123ABC"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Lotus Temple of Austin"
        assert data["primary_color"] == "#123ABC"
        assert data["settings"]["type"] == "temple"
        assert data["settings"]["kiosk"] == {"enabled": True}

    @pytest.mark.asyncio
    async def test_update_kiosk_settings(self, client, organization, admin_headers):
        response = await client.patch(
            "/api/v1/organization/settings",
            json={
                "kiosk": {
                    "enabled": True,
                    "preset_amounts": [10, 20],
                    "payment_methods": ["card", "card", "venmo"],
                    "thank_you_message": "Bless you!",
                }
            },
            headers=admin_headers,
        )

        assert response.status_code == 200
        kiosk = response.json()["settings"]["kiosk"]
        assert kiosk["preset_amounts"] == [10, 20]
        assert kiosk["payment_methods"] == ["card", "venmo"]
        assert kiosk["thank_you_message"] == "Bless you!"

    @pytest.mark.asyncio
    async def test_invalid_color_rejected(self, client, organization, admin_headers):
        response = await client.patch(
            "/api/v1/organization/settings",
            json={"primary_color": "purple"},
            headers=admin_headers,
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_non_positive_preset_rejected(self, client, organization, admin_headers):
        response = await client.patch(
            "/api/v1/organization/settings",
            json={"kiosk": {"preset_amounts": [25, 0]}},
            headers=admin_headers,
        )

        assert response.status_code == 422


class TestWelcomeEmail:

    def test_render_includes_code_and_kiosk_link(self):
        html = email_service.render_organization_welcome(
            admin_name="Asha <Admin>",
            admin_email="asha@example.com",
            org_name="Lotus Temple",
            org_code="LOTUS-4K9Z2Q",
            primary_color="#4A2040",
        )

        assert "LOTUS-4K9Z2Q" in html
        assert "/kiosk/LOTUS-4K9Z2Q/donate" in html
        assert "Asha &lt;Admin&gt;" in html

    def test_disabled_email_is_not_sent(self):
        assert email_service.send_organization_welcome_email(
            "Asha", "asha@example.com", "Lotus Temple", "LOTUS-4K9Z2Q", "#4A2040"
        ) is False


class TestDashboardSummary:
    """GET /organization/summary"""

    @pytest.mark.asyncio
    async def test_summary_counts(self, client, db_session, organization, other_organization, make_staff, make_member):
        pat = await make_member(organization, "Pat", "Lee")
        sam = await make_member(organization, "Sam", "Ng")
        outsider = await make_member(other_organization, "Chris", "Moe")
        db_session.add_all([
            CheckIn(organization_id=organization.id, member_id=pat.id,
                    checked_in_at=datetime.utcnow() - timedelta(days=2)),
            CheckIn(organization_id=other_organization.id, member_id=outsider.id,
                    checked_in_at=datetime.utcnow()),
            Payment(organization_id=organization.id, member_id=pat.id, amount=Decimal("51.00"),
                    payment_method=PaymentMethod.CASH, payment_date=date.today()),
            Payment(organization_id=organization.id, member_id=sam.id, amount=Decimal("25.50"),
                    payment_method=PaymentMethod.CARD, payment_date=date.today() - timedelta(days=10)),
            Payment(organization_id=organization.id, member_id=sam.id, amount=Decimal("1000.00"),
                    payment_method=PaymentMethod.CHECK, payment_date=date.today() - timedelta(days=45)),
        ])
        await db_session.commit()
        _, headers = await make_staff(organization, StaffRole.TREASURER)
        for member in (pat, sam):
            await client.post("/api/v1/check-in", json={"member_id": member.id}, headers=headers)

        response = await client.get("/api/v1/organization/summary", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_members"] == 2
        assert data["todays_check_ins"] == 2
        assert Decimal(str(data["payments_last_30_days"])) == Decimal("76.50")
        assert [row["member"]["first_name"] for row in data["recent_check_ins"]] == ["Sam", "Pat", "Pat"]

    @pytest.mark.asyncio
    async def test_recent_limited_to_five(self, client, organization, admin_headers, make_member):
        pat = await make_member(organization, "Pat", "Lee")
        for _ in range(7):
            await client.post("/api/v1/check-in", json={"member_id": pat.id}, headers=admin_headers)

        data = (await client.get("/api/v1/organization/summary", headers=admin_headers)).json()

        assert data["todays_check_ins"] == 7
        assert len(data["recent_check_ins"]) == 5

    @pytest.mark.asyncio
    async def test_payment_total_hidden_without_payment_access(self, client, organization, make_staff):
        _, headers = await make_staff(organization, StaffRole.VOLUNTEER)

        response = await client.get("/api/v1/organization/summary", headers=headers)

        assert response.status_code == 200
        assert response.json()["payments_last_30_days"] is None
        assert response.json()["total_members"] == 0

    @pytest.mark.asyncio
    async def test_requires_staff_token(self, client, organization):
        response = await client.get("/api/v1/organization/summary")

        assert response.status_code == 401
