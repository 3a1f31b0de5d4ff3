"""
Check-in Service
Records visits resolved from a scanned QR token or a manual search
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import CheckIn, Member, MemberStatus, Staff

logger = logging.getLogger(__name__)


def check_in_warning(member: Member) -> Optional[str]:
    """Non-blocking warning shown to staff for members who are not active"""
    if member.status == MemberStatus.ACTIVE:
        return None
    label = member.status.value.replace("_", " ")
    return f"{member.full_name} is not an active member (status: {label})"


class CheckInService:
    """Append-only check-in log"""

    async def record_check_in(
        self,
        db: AsyncSession,
        member: Member,
        staff: Optional[Staff] = None,
        notes: Optional[str] = None,
    ) -> Tuple[CheckIn, Optional[str]]:
        """
        Append a check-in row for ``member``.

        Repeat visits on the same day are separate rows. Inactive and pending
        members are still checked in; a warning is returned alongside.

        Raises:
            PermissionError: If the staff member belongs to another organization
        """
        if staff is not None and staff.organization_id != member.organization_id:
            raise PermissionError("Member belongs to a different organization")

        check_in = CheckIn(
            organization_id=member.organization_id,
            member_id=member.id,
            checked_in_by=staff.id if staff else None,
            checked_in_at=datetime.utcnow(),
            notes=notes,
        )
        db.add(check_in)
        await db.commit()
        await db.refresh(check_in)

        warning = check_in_warning(member)
        if warning:
            logger.warning(f"Check-in {check_in.id}: {warning}")
        else:
            logger.info(f"Checked in member {member.id} at organization {member.organization_id}")
        return check_in, warning

    async def recent_check_ins(
        self,
        db: AsyncSession,
        organization_id: int,
        limit: int = 20,
        since: Optional[datetime] = None,
    ) -> List[CheckIn]:
        query = (
            select(CheckIn)
            .options(selectinload(CheckIn.member))
            .where(CheckIn.organization_id == organization_id)
        )
        if since is not None:
            query = query.where(CheckIn.checked_in_at >= since)
        result = await db.execute(
            query.order_by(CheckIn.checked_in_at.desc(), CheckIn.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def count_check_ins(self, db: AsyncSession, organization_id: int, since: Optional[datetime] = None) -> int:
        query = select(func.count(CheckIn.id)).where(CheckIn.organization_id == organization_id)
        if since is not None:
            query = query.where(CheckIn.checked_in_at >= since)
        return await db.scalar(query) or 0

    async def member_history(self, db: AsyncSession, member: Member, limit: int = 50) -> List[CheckIn]:
        """Visits of one member, newest first"""
        result = await db.execute(
            select(CheckIn)
            .where(
                CheckIn.member_id == member.id,
                CheckIn.organization_id == member.organization_id,
            )
            .order_by(CheckIn.checked_in_at.desc(), CheckIn.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


check_in_service = CheckInService()
