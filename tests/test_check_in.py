"""
Check-in Tests

QR token resolution, manual search and the append-only check-in log.
"""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import func, select

from app.models import CheckIn, MemberStatus, StaffRole


@pytest.mark.checkin
class TestQrCheckIn:
    """Scanned token -> member -> check-in row"""

    @pytest.mark.asyncio
    async def test_scan_resolves_and_checks_in(self, client, db_session, organization, make_staff, make_member):
        pat = await make_member(organization, "Pat", "Lee", phone="+15550001111")
        staff, headers = await make_staff(organization, StaffRole.VOLUNTEER)

        resolved = await client.get(
            "/api/v1/check-in/resolve", params={"token": pat.qr_token}, headers=headers
        )
        assert resolved.status_code == 200
        assert resolved.json()["first_name"] == "Pat"

        response = await client.post(
            "/api/v1/check-in", json={"member_id": resolved.json()["id"]}, headers=headers
        )

        assert response.status_code == 201
        data = response.json()
        assert data["warning"] is None
        assert data["member"]["id"] == pat.id
        assert data["check_in"]["checked_in_by"] == staff.id
        assert data["check_in"]["organization_id"] == organization.id

    @pytest.mark.asyncio
    async def test_unknown_token(self, client, organization, admin_headers):
        response = await client.get(
            "/api/v1/check-in/resolve", params={"token": "not-a-real-token"}, headers=admin_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Member not found. Invalid QR code."

    @pytest.mark.asyncio
    async def test_inactive_member_checked_in_with_warning(self, client, db_session, organization, admin_headers, make_member):
        lapsed = await make_member(organization, "Pat", "Lee", status=MemberStatus.INACTIVE)

        response = await client.post("/api/v1/check-in", json={"member_id": lapsed.id}, headers=admin_headers)

        assert response.status_code == 201
        assert response.json()["warning"] == "Pat Lee is not an active member (status: inactive)"
        count = await db_session.scalar(select(func.count(CheckIn.id)).where(CheckIn.member_id == lapsed.id))
        assert count == 1

    @pytest.mark.asyncio
    async def test_repeat_check_ins_are_separate_rows(self, client, db_session, organization, admin_headers, make_member):
        pat = await make_member(organization, "Pat", "Lee")

        for _ in range(3):
            response = await client.post("/api/v1/check-in", json={"member_id": pat.id}, headers=admin_headers)
            assert response.status_code == 201

        count = await db_session.scalar(select(func.count(CheckIn.id)).where(CheckIn.member_id == pat.id))
        assert count == 3

    @pytest.mark.asyncio
    async def test_unknown_member_id(self, client, organization, admin_headers):
        response = await client.post("/api/v1/check-in", json={"member_id": 9999}, headers=admin_headers)

        assert response.status_code == 404


@pytest.mark.checkin
class TestManualSearch:
    """Name / phone lookup at the desk"""

    @pytest.mark.asyncio
    async def test_partial_name_matches_first_or_last(self, client, organization, admin_headers, make_member):
        await make_member(organization, "Raj", "Patel")
        await make_member(organization, "Priya", "Sharma")
        await make_member(organization, "Patricia", "Lane")

        response = await client.get("/api/v1/check-in/search", params={"q": "Pat"}, headers=admin_headers)

        names = sorted(f"{m['first_name']} {m['last_name']}" for m in response.json())
        assert names == ["Patricia Lane", "Raj Patel"]

    @pytest.mark.asyncio
    async def test_search_by_name_and_phone(self, client, organization, admin_headers, make_member):
        await make_member(organization, "Pat", "Lee", phone="+15550001111")
        await make_member(organization, "Sam", "Ng", phone="+15559998888")

        by_name = await client.get("/api/v1/check-in/search", params={"q": "lee"}, headers=admin_headers)
        by_phone = await client.get("/api/v1/check-in/search", params={"q": "999"}, headers=admin_headers)

        assert [m["first_name"] for m in by_name.json()] == ["Pat"]
        assert [m["first_name"] for m in by_phone.json()] == ["Sam"]

    @pytest.mark.asyncio
    async def test_no_match_is_empty_list(self, client, organization, admin_headers, make_member):
        await make_member(organization, "Pat", "Lee")

        response = await client.get("/api/v1/check-in/search", params={"q": "zzz"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_blank_query_is_empty_list(self, client, organization, admin_headers, make_member):
        await make_member(organization, "Pat", "Lee")

        response = await client.get("/api/v1/check-in/search", params={"q": "   "}, headers=admin_headers)

        assert response.json() == []

    @pytest.mark.asyncio
    async def test_results_are_capped(self, client, organization, admin_headers, make_member, monkeypatch):
        monkeypatch.setattr("app.core.config.settings.MEMBER_SEARCH_LIMIT", 2)
        for first_name in ("Pat", "Patty", "Patrick"):
            await make_member(organization, first_name, "Lee")

        response = await client.get("/api/v1/check-in/search", params={"q": "pat"}, headers=admin_headers)

        assert len(response.json()) == 2


@pytest.mark.checkin
class TestRecentCheckIns:

    @pytest.mark.asyncio
    async def test_recent_newest_first_with_member(self, client, organization, admin_headers, make_member):
        pat = await make_member(organization, "Pat", "Lee")
        sam = await make_member(organization, "Sam", "Ng")
        await client.post("/api/v1/check-in", json={"member_id": pat.id}, headers=admin_headers)
        await client.post("/api/v1/check-in", json={"member_id": sam.id, "notes": "Guest"}, headers=admin_headers)

        response = await client.get("/api/v1/check-in/recent", headers=admin_headers)

        assert response.status_code == 200
        rows = response.json()
        assert [row["member"]["first_name"] for row in rows] == ["Sam", "Pat"]
        assert rows[0]["notes"] == "Guest"

    @pytest.mark.asyncio
    async def test_recent_since_filter(self, client, db_session, organization, admin_headers, make_member):
        pat = await make_member(organization, "Pat", "Lee")
        db_session.add(CheckIn(
            organization_id=organization.id, member_id=pat.id,
            checked_in_at=datetime.utcnow() - timedelta(days=3), notes="Old",
        ))
        await db_session.commit()
        await client.post("/api/v1/check-in", json={"member_id": pat.id, "notes": "New"}, headers=admin_headers)

        since = (datetime.utcnow() - timedelta(days=1)).isoformat()
        response = await client.get("/api/v1/check-in/recent", params={"since": since}, headers=admin_headers)

        assert [row["notes"] for row in response.json()] == ["New"]
