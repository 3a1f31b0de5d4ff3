"""
Front-desk check-in flow: scan or search, confirm, commit
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.client.api import RemoteDataService
from app.client.errors import NotFoundError, RemoteServiceError

logger = logging.getLogger(__name__)

MEMBER_NOT_FOUND = "Member not found. Invalid QR code."
SCAN_FAILED = "Error scanning QR code"
NO_MEMBERS_FOUND = "No members found"
SEARCH_FAILED = "Search failed"
CHECK_IN_FAILED = "Failed to check in"


class DeskMode(str, enum.Enum):
    SCAN = "scan"
    MANUAL = "manual"


@dataclass
class DeskResult:
    success: bool
    member: Optional[Dict[str, Any]] = None
    members: List[Dict[str, Any]] = field(default_factory=list)
    message: Optional[str] = None
    error: Optional[str] = None


def member_name(member: Dict[str, Any]) -> str:
    return f"{member.get('first_name', '')} {member.get('last_name', '')}".strip()


def status_warning(member: Dict[str, Any]) -> Optional[str]:
    status = member.get("status")
    if status == "active":
        return None
    label = (status or "unknown").replace("_", " ")
    return f"{member_name(member)} is not an active member (status: {label}). Check in anyway?"


class CheckInDesk:
    """State of the check-in page for one staff device"""

    def __init__(self, remote: RemoteDataService):
        self.remote = remote
        self.mode = DeskMode.SCAN
        self.selected_member: Optional[Dict[str, Any]] = None
        self.search_results: List[Dict[str, Any]] = []

    def set_mode(self, mode: DeskMode) -> None:
        self.mode = mode
        self.search_results = []

    @property
    def needs_override(self) -> bool:
        """True when the selected member is not active and staff must confirm anyway"""
        return self.selected_member is not None and status_warning(self.selected_member) is not None

    def select_member(self, member: Dict[str, Any]) -> Optional[str]:
        """Select a member for confirmation; returns the status warning if any"""
        self.selected_member = member
        return status_warning(member)

    def clear_selection(self) -> None:
        self.selected_member = None

    async def resolve_token(self, token: str) -> DeskResult:
        """Dispatch target for ``ScanSession``"""
        try:
            member = await self.remote.resolve_qr_token(token)
        except NotFoundError:
            logger.info("Scanned token did not match a member")
            return DeskResult(success=False, error=MEMBER_NOT_FOUND)
        except RemoteServiceError as e:
            logger.error(f"QR lookup failed: {e}")
            return DeskResult(success=False, error=SCAN_FAILED)

        warning = self.select_member(member)
        return DeskResult(success=True, member=member, message=warning)

    async def search(self, query: str) -> DeskResult:
        term = (query or "").strip()
        if not term:
            self.search_results = []
            return DeskResult(success=True, message=NO_MEMBERS_FOUND)

        try:
            members = await self.remote.search_members(term)
        except RemoteServiceError as e:
            logger.error(f"Member search failed: {e}")
            return DeskResult(success=False, error=SEARCH_FAILED)

        self.search_results = members
        if not members:
            return DeskResult(success=True, message=NO_MEMBERS_FOUND)
        return DeskResult(success=True, members=members)

    async def confirm(self, override: bool = False, notes: Optional[str] = None) -> DeskResult:
        """
        Commit a check-in for the selected member.

        Non-active members need ``override=True``; nothing is written until then.
        """
        member = self.selected_member
        if member is None:
            return DeskResult(success=False, error="Select a member first")

        warning = status_warning(member)
        if warning and not override:
            return DeskResult(success=False, member=member, error=warning)

        try:
            await self.remote.check_in(member["id"], notes=notes)
        except RemoteServiceError as e:
            logger.error(f"Check-in failed for member {member.get('id')}: {e}")
            return DeskResult(success=False, member=member, error=CHECK_IN_FAILED)

        self.clear_selection()
        self.search_results = []
        return DeskResult(success=True, member=member, message=f"{member_name(member)} checked in!")
