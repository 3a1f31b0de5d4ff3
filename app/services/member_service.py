"""
Member Service
Member lookup, search, registration and the family group bootstrap
"""
import secrets
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import select, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models import FamilyGroup, Member, MemberStatus, RelationshipType
from app.schemas.member import MemberCreate, ProfileSetup, FamilyMemberCreate

logger = logging.getLogger(__name__)

NEXT_STEP_PROFILE_SETUP = "profile_setup"
NEXT_STEP_HOME = "home"


def generate_qr_token() -> str:
    return secrets.token_urlsafe(32)


def assign_qr_token(member: Member) -> None:
    """
    Give an active, independent member their check-in token.

    Tokens are assigned once and never replaced; dependents check in through
    their family and get none.
    """
    if member.status == MemberStatus.ACTIVE and member.is_independent and not member.qr_token:
        member.qr_token = generate_qr_token()


def next_onboarding_step(member: Optional[Member]) -> str:
    """Screen to show after OTP verification"""
    if (
        member is None
        or member.status == MemberStatus.PENDING_REGISTRATION
        or not member.photo_url
    ):
        return NEXT_STEP_PROFILE_SETUP
    return NEXT_STEP_HOME


class MemberService:
    """Service for member queries and multi-row registration flows"""

    async def get_member(self, db: AsyncSession, organization_id: int, member_id: int) -> Optional[Member]:
        result = await db.execute(
            select(Member).where(
                Member.id == member_id,
                Member.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_member_by_phone(self, db: AsyncSession, organization_id: int, phone: str) -> Optional[Member]:
        result = await db.execute(
            select(Member)
            .where(Member.organization_id == organization_id, Member.phone == phone)
            .order_by(Member.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_member_by_qr_token(self, db: AsyncSession, organization_id: int, qr_token: str) -> Optional[Member]:
        """Exact token match scoped to the organization"""
        token = (qr_token or "").strip()
        if not token:
            return None
        result = await db.execute(
            select(Member).where(
                Member.organization_id == organization_id,
                Member.qr_token == token,
            )
        )
        return result.scalar_one_or_none()

    async def search_members(
        self,
        db: AsyncSession,
        organization_id: int,
        query: str,
        limit: Optional[int] = None,
    ) -> List[Member]:
        """
        Case-insensitive substring match on first name, last name and phone.

        No ordering is guaranteed; an empty query returns no rows.
        """
        term = (query or "").strip()
        if not term:
            return []

        pattern = f"%{term}%"
        result = await db.execute(
            select(Member)
            .where(
                Member.organization_id == organization_id,
                or_(
                    Member.first_name.ilike(pattern),
                    Member.last_name.ilike(pattern),
                    Member.phone.ilike(pattern),
                ),
            )
            .limit(limit or settings.MEMBER_SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    async def get_family_members(self, db: AsyncSession, member: Member) -> List[Member]:
        """Other members of ``member``'s family group"""
        if not member.family_group_id:
            return []
        result = await db.execute(
            select(Member)
            .where(
                Member.family_group_id == member.family_group_id,
                Member.organization_id == member.organization_id,
                Member.id != member.id,
            )
            .order_by(Member.is_prime_member.desc(), Member.first_name)
        )
        return list(result.scalars().all())

    async def _create_family_group(self, db: AsyncSession, organization_id: int) -> FamilyGroup:
        family_group = FamilyGroup(organization_id=organization_id)
        db.add(family_group)
        await db.commit()
        await db.refresh(family_group)
        return family_group

    async def _link_prime_member(self, db: AsyncSession, family_group_id: int, member_id: int) -> None:
        """
        Back-patch ``prime_member_id``. Failure is logged and not retried: the
        member already points at the group through ``family_group_id``.
        """
        try:
            family_group = await db.get(FamilyGroup, family_group_id)
            if family_group is not None:
                family_group.prime_member_id = member_id
                await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Could not set prime member {member_id} on family group {family_group_id}: {e}")

    async def register_member(self, db: AsyncSession, organization_id: int, data: MemberCreate) -> Member:
        """
        Front-desk registration: new family group with the member as prime.

        Raises:
            ValueError: If the phone is already registered in the organization
        """
        if await self.get_member_by_phone(db, organization_id, data.phone):
            raise ValueError("A member with this phone number already exists")

        family_group = await self._create_family_group(db, organization_id)

        member = Member(
            organization_id=organization_id,
            family_group_id=family_group.id,
            phone=data.phone,
            email=data.email,
            first_name=data.first_name,
            last_name=data.last_name,
            status=MemberStatus.PENDING_INVITE,
            is_prime_member=True,
            is_independent=True,
            relationship_to_prime=RelationshipType.SELF,
            membership_date=date.today(),
        )
        db.add(member)
        await db.commit()
        await db.refresh(member)

        await self._link_prime_member(db, family_group.id, member.id)
        await db.refresh(member)
        logger.info(f"Registered member {member.id} in organization {organization_id}")
        return member

    async def complete_profile(
        self,
        db: AsyncSession,
        organization_id: int,
        phone: str,
        data: ProfileSetup,
        photo_url: Optional[str],
    ) -> Member:
        """
        Self-registration after OTP verification.

        Sequence: create a family group if the member has none, upsert the
        member as an active prime member, then point the new group back at the
        member. A failure on the member write leaves the new family group
        behind without a prime member.
        """
        existing = await self.get_member_by_phone(db, organization_id, phone)

        family_group_id = existing.family_group_id if existing else None
        created_group = False
        if not family_group_id:
            family_group = await self._create_family_group(db, organization_id)
            family_group_id = family_group.id
            created_group = True

        member = existing or Member(organization_id=organization_id, phone=phone)
        member.first_name = data.first_name
        member.last_name = data.last_name
        member.email = data.email
        if photo_url:
            member.photo_url = photo_url
        member.family_group_id = family_group_id
        member.status = MemberStatus.ACTIVE
        member.is_independent = True
        member.membership_date = member.membership_date or date.today()
        if created_group or existing is None or existing.is_prime_member:
            member.is_prime_member = True
            member.relationship_to_prime = RelationshipType.SELF
        assign_qr_token(member)

        if existing is None:
            db.add(member)
        await db.commit()
        await db.refresh(member)

        if created_group:
            await self._link_prime_member(db, family_group_id, member.id)
            await db.refresh(member)

        return member

    async def add_family_member(
        self,
        db: AsyncSession,
        prime: Member,
        data: FamilyMemberCreate,
        photo_url: Optional[str],
    ) -> Member:
        """
        Add a household member to the prime member's family group.

        Raises:
            PermissionError: If ``prime`` is not the family's prime member
            ValueError: If ``prime`` has no family group
        """
        if not prime.is_prime_member:
            raise PermissionError("Only the primary member can add family members")
        if not prime.family_group_id:
            raise ValueError("Could not find your family group")

        member = Member(
            organization_id=prime.organization_id,
            family_group_id=prime.family_group_id,
            phone=None,
            first_name=data.first_name,
            last_name=data.last_name,
            photo_url=photo_url,
            status=MemberStatus.ACTIVE,
            is_prime_member=False,
            is_independent=data.is_independent,
            relationship_to_prime=data.relationship_to_prime,
            membership_date=date.today(),
        )
        assign_qr_token(member)
        db.add(member)
        await db.commit()
        await db.refresh(member)
        return member


member_service = MemberService()
