"""
Organization Context Tests

Device-local organization storage, org-code validation and launch routing.
"""
import httpx
import pytest

from app.client.api import RemoteDataService
from app.client.launch import LaunchRoute, resolve_launch_route
from app.client.org_context import (
    ACTIVE_ORG_KEY, GENERIC_ERROR, INACTIVE_ERROR, INVALID_CODE_ERROR, LOOKUP_FAILED_ERROR,
    NOT_FOUND_ERROR, ORG_LIST_KEY, ORG_STORAGE_KEY, OrganizationContextStore, StoredOrganization,
)
from app.client.storage import KeyValueStore
from app.models import Organization


LOTUS = StoredOrganization(id=1, name="Lotus Temple", org_code="LOTUS-TEMPLE1")
GRACE = StoredOrganization(id=2, name="Grace Church", org_code="GRACE-CHURCH", primary_color="#123456")


class CountingTransport(httpx.AsyncBaseTransport):
    """Answers every request with a fixed response and counts calls"""

    def __init__(self, status_code=200, payload=None, error=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else []
        self.error = error
        self.calls = 0

    async def handle_async_request(self, request):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.payload, request=request)


def remote_with(transport):
    return RemoteDataService("http://api.test/api/v1", client=httpx.AsyncClient(transport=transport))


@pytest.fixture
def store():
    return OrganizationContextStore(KeyValueStore())


@pytest.mark.client
class TestValidateOrgCode:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "   ", "ab", "ABCD", " ab1 "])
    async def test_short_codes_make_no_network_call(self, code):
        transport = CountingTransport()
        store = OrganizationContextStore(KeyValueStore(), remote_with(transport))

        result = await store.validate_org_code(code)

        assert result.success is False
        assert result.error == INVALID_CODE_ERROR
        assert transport.calls == 0

    @pytest.mark.asyncio
    async def test_resolves_through_api_and_persists(self, remote, organization):
        store = OrganizationContextStore(KeyValueStore(), remote)

        result = await store.validate_org_code("lotus-temple1")

        assert result.success is True
        assert result.organization.name == "Lotus Temple"
        assert store.save_organization(result.organization)
        assert store.get_stored_organization().org_code == "LOTUS-TEMPLE1"

    @pytest.mark.asyncio
    async def test_unknown_code(self, remote, organization):
        store = OrganizationContextStore(KeyValueStore(), remote)

        result = await store.validate_org_code("NOPE-0000")

        assert result.error == NOT_FOUND_ERROR

    @pytest.mark.asyncio
    async def test_inactive_organization(self, remote, db_session):
        db_session.add(Organization(
            name="Closed Temple", slug="closed-temple", org_code="CLOSED-1", is_active=False, settings={}
        ))
        await db_session.commit()
        store = OrganizationContextStore(KeyValueStore(), remote)

        result = await store.validate_org_code("closed-1")

        assert result.error == INACTIVE_ERROR

    @pytest.mark.asyncio
    async def test_network_failure(self):
        transport = CountingTransport(error=httpx.ConnectError("offline"))
        store = OrganizationContextStore(KeyValueStore(), remote_with(transport))

        result = await store.validate_org_code("LOTUS-TEMPLE1")

        assert result.error == LOOKUP_FAILED_ERROR

    @pytest.mark.asyncio
    async def test_malformed_row_is_generic_error(self):
        transport = CountingTransport(payload=[{"is_active": True}])
        store = OrganizationContextStore(KeyValueStore(), remote_with(transport))

        result = await store.validate_org_code("LOTUS-TEMPLE1")

        assert result.error == GENERIC_ERROR


@pytest.mark.client
class TestStoredOrganizations:

    def test_nothing_stored(self, store):
        assert store.get_stored_organization() is None
        assert store.get_all_organizations() == []
        assert store.get_active_organization() is None

    def test_corrupt_values_read_as_empty(self, store):
        store.storage.set_item(ORG_STORAGE_KEY, "{not json")
        store.storage.set_item(ORG_LIST_KEY, '{"id": 1}')
        store.storage.set_item(ACTIVE_ORG_KEY, '"1"')

        assert store.get_stored_organization() is None
        assert store.get_all_organizations() == []
        assert store.get_active_org_id() is None

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "storage.json"
        path.write_text("garbage")
        store = OrganizationContextStore(KeyValueStore(str(path)))

        assert store.get_stored_organization() is None
        assert store.save_organization(LOTUS)
        assert store.get_stored_organization() == LOTUS

    def test_survives_restart(self, tmp_path):
        path = str(tmp_path / "storage.json")
        OrganizationContextStore(KeyValueStore(path)).save_organization(LOTUS)

        reopened = OrganizationContextStore(KeyValueStore(path))

        assert reopened.get_stored_organization() == LOTUS

    def test_clear_keeps_joined_list(self, store):
        store.add_organization(LOTUS)
        store.save_organization(LOTUS)

        store.clear_organization()

        assert store.has_stored_organization() is False
        assert store.get_all_organizations() == [LOTUS]

    def test_add_is_upsert_by_id(self, store):
        store.add_organization(LOTUS)
        store.add_organization(GRACE)
        renamed = StoredOrganization(id=1, name="Lotus Temple Austin", org_code="LOTUS-TEMPLE1")

        store.add_organization(renamed)

        assert store.get_all_organizations() == [renamed, GRACE]

    def test_switch_active_organization(self, store):
        store.add_organization(LOTUS)
        store.add_organization(GRACE)

        assert store.set_active_organization(GRACE.id)

        assert store.get_active_org_id() == GRACE.id
        assert store.get_active_organization() == GRACE
        assert store.get_stored_organization() == GRACE

    def test_cannot_activate_unjoined_organization(self, store):
        store.add_organization(LOTUS)

        assert store.set_active_organization(99) is False
        assert store.get_active_org_id() is None

    def test_remove_active_organization_clears_pointers(self, store):
        store.add_organization(LOTUS)
        store.add_organization(GRACE)
        store.set_active_organization(LOTUS.id)

        assert store.remove_organization(LOTUS.id)

        assert store.get_all_organizations() == [GRACE]
        assert store.get_active_org_id() is None
        assert store.get_stored_organization() is None

    def test_active_falls_back_to_current_pointer(self, store):
        store.save_organization(LOTUS)

        assert store.get_active_organization() == LOTUS

    @pytest.mark.asyncio
    async def test_refresh_updates_cached_copies(self, db_session, remote, organization):
        store = OrganizationContextStore(KeyValueStore(), remote)
        cached = StoredOrganization(id=organization.id, name="Old Name", org_code=organization.org_code)
        store.add_organization(cached)
        store.add_organization(GRACE)
        store.save_organization(cached)

        fresh = await store.refresh_organization(organization.id)

        assert fresh.name == "Lotus Temple"
        assert store.get_stored_organization().name == "Lotus Temple"
        assert [o.name for o in store.get_all_organizations()] == ["Lotus Temple", "Grace Church"]

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_cache(self, remote):
        store = OrganizationContextStore(KeyValueStore(), remote)
        store.save_organization(LOTUS)

        assert await store.refresh_organization(9999) is None
        assert store.get_stored_organization() == LOTUS


@pytest.mark.client
class TestLaunchRouting:

    def test_sign_out_flag_is_one_shot(self, store):
        store.add_organization(LOTUS)
        store.set_active_organization(LOTUS.id)
        store.mark_signed_out()

        first = resolve_launch_route(store, has_session=True)
        second = resolve_launch_route(store, has_session=True)

        assert first == LaunchRoute.WELCOME
        assert second == LaunchRoute.HOME

    def test_no_session(self, store):
        store.save_organization(LOTUS)

        assert resolve_launch_route(store, has_session=False) == LaunchRoute.WELCOME

    def test_session_without_organization(self, store):
        assert resolve_launch_route(store, has_session=True) == LaunchRoute.ORG_CODE
