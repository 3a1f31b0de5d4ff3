"""
Organization Service
Org-code lookup and the organization + first admin bootstrap
"""
import re
import secrets
import string
import time
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models import Member, Organization, Payment, Staff, StaffRole
from app.schemas.check_in import CheckInWithMember
from app.schemas.organization import OrganizationSummary
from app.services.check_in_service import check_in_service
from app.utils.validators import normalize_org_code

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.digits + string.ascii_uppercase
CODE_SUFFIX_LENGTH = 6
MAX_CODE_ATTEMPTS = 10


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", name.lower())
    slug = re.sub(r"\s+", "-", slug)
    return slug[:50]


def generate_org_code(name: str) -> str:
    """
    Human-typable join code, e.g. "Lotus Temple" -> "LOTUS-4K9Z2Q".

    Prefix is the first six characters of the name, upper-cased and stripped to
    letters and digits; the suffix is random.
    """
    prefix = re.sub(r"[^A-Z0-9]", "", name[:6].upper()) or "ORG"
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_SUFFIX_LENGTH))
    return f"{prefix}-{suffix}"


class OrganizationService:
    """Tenant bootstrap and lookup"""

    async def get_organization_by_code(self, db: AsyncSession, code: str) -> List[Organization]:
        """
        Case-insensitive exact match on ``org_code``.

        Inactive organizations are included so callers can tell "inactive"
        apart from "not found".
        """
        normalized = normalize_org_code(code)
        if not normalized:
            return []

        result = await db.execute(
            select(Organization).where(func.upper(Organization.org_code) == normalized)
        )
        return list(result.scalars().all())

    async def get_active_organization_by_code(self, db: AsyncSession, code: str) -> Optional[Organization]:
        for organization in await self.get_organization_by_code(db, code):
            if organization.is_active:
                return organization
        return None

    async def _unique_org_code(self, db: AsyncSession, name: str) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            candidate = generate_org_code(name)
            if not await self.get_organization_by_code(db, candidate):
                return candidate
        raise ValueError("Could not generate a unique organization code")

    def _new_organization(self, name: str, slug: str, org_code: str, org_type: str) -> Organization:
        return Organization(
            name=name,
            slug=slug,
            org_code=org_code,
            primary_color=settings.DEFAULT_PRIMARY_COLOR,
            is_active=True,
            settings={"type": org_type},
        )

    async def create_organization_with_admin(
        self,
        db: AsyncSession,
        org_name: str,
        org_type: str,
        admin_user_id: int,
        admin_name: str,
        admin_email: str,
    ) -> Organization:
        """
        Create an organization and its first admin staff row in one transaction.

        Either both rows are committed or neither is.
        """
        org_code = await self._unique_org_code(db, org_name)
        organization = self._new_organization(org_name, slugify(org_name), org_code, org_type)
        db.add(organization)
        await db.flush()

        db.add(Staff(
            organization_id=organization.id,
            user_id=admin_user_id,
            name=admin_name,
            email=admin_email,
            role=StaffRole.ADMIN,
            is_active=True,
        ))
        await db.commit()
        await db.refresh(organization)

        logger.info(f"Created organization {organization.id} ({organization.org_code}) with admin user {admin_user_id}")
        return organization

    async def create_organization_fallback(
        self,
        db: AsyncSession,
        org_name: str,
        org_type: str,
        admin_user_id: int,
        admin_name: str,
        admin_email: str,
    ) -> Organization:
        """
        Two separate commits: organization, then staff.

        A failed staff insert is logged and the organization is returned anyway,
        leaving a staff-less organization behind.
        """
        slug = f"{slugify(org_name)}-{int(time.time() * 1000)}"
        org_code = await self._unique_org_code(db, org_name)
        organization = self._new_organization(org_name, slug, org_code, org_type)
        db.add(organization)
        await db.commit()
        await db.refresh(organization)

        try:
            db.add(Staff(
                organization_id=organization.id,
                user_id=admin_user_id,
                name=admin_name,
                email=admin_email,
                role=StaffRole.ADMIN,
                is_active=True,
            ))
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            await db.refresh(organization)
            logger.error(f"Staff creation error for organization {organization.id}: {e}")

        return organization

    async def bootstrap_organization(
        self,
        db: AsyncSession,
        org_name: str,
        org_type: str,
        admin_user_id: int,
        admin_name: str,
        admin_email: str,
    ) -> Organization:
        """Atomic bootstrap, falling back to the two-step path if it errors"""
        try:
            return await self.create_organization_with_admin(
                db, org_name, org_type, admin_user_id, admin_name, admin_email
            )
        except SQLAlchemyError as e:
            logger.error(f"Organization creation error, using fallback: {e}")
            await db.rollback()

        return await self.create_organization_fallback(
            db, org_name, org_type, admin_user_id, admin_name, admin_email
        )

    async def get_summary(
        self,
        db: AsyncSession,
        organization_id: int,
        include_payments: bool = True,
        recent_limit: int = 5,
    ) -> OrganizationSummary:
        """
        Dashboard overview: member count, check-ins since midnight UTC,
        payments recorded over the last 30 days and the latest check-ins.
        """
        total_members = await db.scalar(
            select(func.count(Member.id)).where(Member.organization_id == organization_id)
        )
        midnight = datetime.combine(datetime.utcnow().date(), datetime.min.time())
        todays_check_ins = await check_in_service.count_check_ins(db, organization_id, since=midnight)
        recent = await check_in_service.recent_check_ins(db, organization_id, limit=recent_limit)

        payments_total = None
        if include_payments:
            total = await db.scalar(
                select(func.coalesce(func.sum(Payment.amount), 0)).where(
                    Payment.organization_id == organization_id,
                    Payment.payment_date >= date.today() - timedelta(days=30),
                )
            )
            payments_total = Decimal(str(total or 0))

        return OrganizationSummary(
            total_members=total_members or 0,
            todays_check_ins=todays_check_ins,
            payments_last_30_days=payments_total,
            recent_check_ins=[CheckInWithMember.model_validate(c) for c in recent],
        )


organization_service = OrganizationService()
