"""
Organization context for the member app.

Remembers which organizations the member has joined, which one is active, and
whether the previous session ended with an explicit sign-out. Every read
degrades to "nothing stored" on storage or parse errors.
"""
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from app.client.api import RemoteDataService
from app.client.config import ClientConfig
from app.client.errors import RemoteServiceError
from app.client.storage import KeyValueStore
from app.utils.validators import normalize_org_code

logger = logging.getLogger(__name__)

ORG_STORAGE_KEY = "@Sanctum:organization"
ORG_LIST_KEY = "@Sanctum:organizations"
ACTIVE_ORG_KEY = "@Sanctum:activeOrgId"
SIGNED_OUT_KEY = "@Sanctum:justSignedOut"

DEFAULT_PRIMARY_COLOR = "#4A2040"
MIN_CODE_LENGTH = 5

INVALID_CODE_ERROR = "Please enter a valid organization code"
LOOKUP_FAILED_ERROR = "Unable to verify organization code"
NOT_FOUND_ERROR = "Organization not found. Please check your code."
INACTIVE_ERROR = "This organization is no longer active"
GENERIC_ERROR = "Something went wrong. Please try again."


@dataclass
class StoredOrganization:
    id: int
    name: str
    org_code: str
    logo_url: Optional[str] = None
    primary_color: str = DEFAULT_PRIMARY_COLOR

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "StoredOrganization":
        return cls(
            id=row["id"],
            name=row["name"],
            org_code=row["org_code"],
            logo_url=row.get("logo_url"),
            primary_color=row.get("primary_color") or DEFAULT_PRIMARY_COLOR,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class OrgCodeResult:
    success: bool
    organization: Optional[StoredOrganization] = None
    error: Optional[str] = None


class OrganizationContextStore:
    """Typed access to the device-local organization state"""

    def __init__(
        self,
        storage: KeyValueStore,
        remote: Optional[RemoteDataService] = None,
        min_code_length: int = MIN_CODE_LENGTH,
    ):
        self.storage = storage
        self.remote = remote
        self.min_code_length = min_code_length

    @classmethod
    def from_config(cls, config: ClientConfig, remote: Optional[RemoteDataService] = None) -> "OrganizationContextStore":
        return cls(KeyValueStore(config.storage_path), remote, min_code_length=config.org_code_min_length)

    # ==================== STORAGE HELPERS ====================

    def _read_json(self, key: str) -> Any:
        try:
            raw = self.storage.get_item(key)
            return json.loads(raw) if raw else None
        except (OSError, ValueError) as e:
            logger.error(f"Error reading {key}: {e}")
            return None

    def _write_json(self, key: str, value: Any) -> bool:
        try:
            self.storage.set_item(key, json.dumps(value))
            return True
        except (OSError, TypeError) as e:
            logger.error(f"Error saving {key}: {e}")
            return False

    def _remove(self, key: str) -> bool:
        try:
            self.storage.remove_item(key)
            return True
        except OSError as e:
            logger.error(f"Error clearing {key}: {e}")
            return False

    @staticmethod
    def _parse(data: Any) -> Optional[StoredOrganization]:
        if not isinstance(data, dict):
            return None
        try:
            return StoredOrganization.from_row(data)
        except (KeyError, TypeError):
            return None

    # ==================== CODE LOOKUP ====================

    async def validate_org_code(self, code: str) -> OrgCodeResult:
        """
        Resolve a typed organization code.

        Codes shorter than the minimum are rejected without a network call.
        Never raises.
        """
        try:
            normalized = normalize_org_code(code)
            if len(normalized) < self.min_code_length:
                return OrgCodeResult(success=False, error=INVALID_CODE_ERROR)

            if self.remote is None:
                raise RuntimeError("No remote data service configured")

            try:
                rows = await self.remote.get_organization_by_code(normalized)
            except RemoteServiceError as e:
                logger.error(f"Org lookup error: {e}")
                return OrgCodeResult(success=False, error=LOOKUP_FAILED_ERROR)

            if not rows:
                logger.info(f"No organization for code {normalized}")
                return OrgCodeResult(success=False, error=NOT_FOUND_ERROR)

            row = rows[0]
            if not row.get("is_active"):
                return OrgCodeResult(success=False, error=INACTIVE_ERROR)

            return OrgCodeResult(success=True, organization=StoredOrganization.from_row(row))
        except Exception as e:
            logger.error(f"validate_org_code error: {e}")
            return OrgCodeResult(success=False, error=GENERIC_ERROR)

    # ==================== CURRENT ORGANIZATION ====================

    def save_organization(self, org: StoredOrganization) -> bool:
        """Overwrite the current organization pointer"""
        return self._write_json(ORG_STORAGE_KEY, org.to_dict())

    def get_stored_organization(self) -> Optional[StoredOrganization]:
        return self._parse(self._read_json(ORG_STORAGE_KEY))

    def clear_organization(self) -> bool:
        """Remove the current pointer; the joined-organizations list is untouched"""
        return self._remove(ORG_STORAGE_KEY)

    def has_stored_organization(self) -> bool:
        return self.get_stored_organization() is not None

    async def refresh_organization(self, org_id: int) -> Optional[StoredOrganization]:
        """
        Re-fetch an organization and overwrite the cached copies of it.

        Returns None when the fetch fails; the cache is then left as it was.
        """
        if self.remote is None:
            return None
        try:
            row = await self.remote.get_organization(org_id)
            fresh = StoredOrganization.from_row(row)
        except (RemoteServiceError, KeyError, TypeError) as e:
            logger.error(f"Error refreshing organization {org_id}: {e}")
            return None

        current = self.get_stored_organization()
        if current is not None and current.id == fresh.id:
            self.save_organization(fresh)

        organizations = self.get_all_organizations()
        if any(org.id == fresh.id for org in organizations):
            self._write_json(
                ORG_LIST_KEY,
                [(fresh if org.id == fresh.id else org).to_dict() for org in organizations],
            )
        return fresh

    # ==================== JOINED ORGANIZATIONS ====================

    def get_all_organizations(self) -> List[StoredOrganization]:
        data = self._read_json(ORG_LIST_KEY)
        if not isinstance(data, list):
            return []
        organizations = []
        for item in data:
            org = self._parse(item)
            if org is not None:
                organizations.append(org)
        return organizations

    def add_organization(self, org: StoredOrganization) -> bool:
        """Insert or replace by id"""
        organizations = self.get_all_organizations()
        if any(o.id == org.id for o in organizations):
            organizations = [org if o.id == org.id else o for o in organizations]
        else:
            organizations.append(org)
        return self._write_json(ORG_LIST_KEY, [o.to_dict() for o in organizations])

    def remove_organization(self, org_id: int) -> bool:
        organizations = self.get_all_organizations()
        remaining = [o for o in organizations if o.id != org_id]
        ok = self._write_json(ORG_LIST_KEY, [o.to_dict() for o in remaining])

        if self.get_active_org_id() == org_id:
            ok = self._remove(ACTIVE_ORG_KEY) and ok
        current = self.get_stored_organization()
        if current is not None and current.id == org_id:
            ok = self.clear_organization() and ok
        return ok

    def get_active_org_id(self) -> Optional[int]:
        value = self._read_json(ACTIVE_ORG_KEY)
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    def set_active_organization(self, org_id: int) -> bool:
        """
        Switch the active organization.

        Only organizations already in the joined list can be activated. The
        caller reloads all screens afterwards.
        """
        org = next((o for o in self.get_all_organizations() if o.id == org_id), None)
        if org is None:
            return False
        return self._write_json(ACTIVE_ORG_KEY, org_id) and self.save_organization(org)

    def get_active_organization(self) -> Optional[StoredOrganization]:
        active_id = self.get_active_org_id()
        if active_id is not None:
            for org in self.get_all_organizations():
                if org.id == active_id:
                    return org
        return self.get_stored_organization()

    # ==================== SIGN-OUT FLAG ====================

    def mark_signed_out(self) -> bool:
        return self._write_json(SIGNED_OUT_KEY, True)

    def consume_signed_out(self) -> bool:
        """Read and clear the sign-out marker; True at most once per sign-out"""
        flagged = self._read_json(SIGNED_OUT_KEY) is True
        if flagged:
            self._remove(SIGNED_OUT_KEY)
        return flagged
