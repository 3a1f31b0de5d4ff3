"""
Announcement Tests

Staff authoring, publishing and the member news feed.
"""
import pytest

from app.models import StaffRole


async def _create(client, headers, title="Diwali celebration", **extra):
    payload = {"title": title, "content": "Join us on Saturday evening."}
    payload.update(extra)
    return await client.post("/api/v1/announcements", json=payload, headers=headers)


class TestAnnouncementAuthoring:

    @pytest.mark.asyncio
    async def test_create_draft(self, client, organization, admin_headers):
        response = await _create(client, admin_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["is_published"] is False
        assert data["published_at"] is None
        assert data["image_url"] is None

    @pytest.mark.asyncio
    async def test_create_with_image(self, client, organization, admin_headers, fake_s3):
        response = await _create(client, admin_headers, image_base64="aGVsbG8=")

        assert response.status_code == 201
        assert response.json()["image_url"].startswith("https://test-bucket.s3.amazonaws.com/announcement-")
        assert fake_s3.uploads[0][2] == "sanctum-announcement-images"

    @pytest.mark.asyncio
    async def test_image_upload_failure(self, client, organization, admin_headers, fake_s3):
        fake_s3.fail = True

        response = await _create(client, admin_headers, image_base64="aGVsbG8=")

        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_volunteer_cannot_author(self, client, organization, make_staff):
        _, headers = await make_staff(organization, StaffRole.VOLUNTEER)

        response = await _create(client, headers)

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_edit_title(self, client, organization, admin_headers):
        created = await _create(client, admin_headers)

        response = await client.patch(
            f"/api/v1/announcements/{created.json()['id']}",
            json={"title": "Diwali celebration (updated)"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["title"] == "Diwali celebration (updated)"
        assert response.json()["content"] == "Join us on Saturday evening."


class TestPublishing:

    @pytest.mark.asyncio
    async def test_publish_stamps_once(self, client, organization, admin_headers):
        created = await _create(client, admin_headers)
        announcement_id = created.json()["id"]

        first = await client.post(f"/api/v1/announcements/{announcement_id}/publish", headers=admin_headers)
        await client.post(f"/api/v1/announcements/{announcement_id}/unpublish", headers=admin_headers)
        again = await client.post(f"/api/v1/announcements/{announcement_id}/publish", headers=admin_headers)

        assert first.json()["is_published"] is True
        assert first.json()["published_at"] is not None
        assert again.json()["published_at"] == first.json()["published_at"]

    @pytest.mark.asyncio
    async def test_other_org_announcement_not_found(
        self, client, organization, other_organization, make_staff, admin_headers
    ):
        _, other_headers = await make_staff(other_organization, StaffRole.ADMIN)
        created = await _create(client, other_headers)

        response = await client.post(
            f"/api/v1/announcements/{created.json()['id']}/publish", headers=admin_headers
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_news_feed_shows_published_only(
        self, client, organization, admin_headers, make_member, member_headers
    ):
        await make_member(organization, "Asha", "Rao", phone="+15552223333")
        await _create(client, admin_headers, title="Draft")
        await _create(client, admin_headers, title="Published", publish=True)

        response = await client.get(
            "/api/v1/me/news",
            params={"organization_id": organization.id},
            headers=member_headers("+15552223333"),
        )

        assert response.status_code == 200
        assert [a["title"] for a in response.json()] == ["Published"]
