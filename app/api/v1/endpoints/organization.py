"""
Organization API Endpoints
Public org-code lookup for the member app, and settings for dashboard admins
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified
from typing import List
import logging

from app.db.session import get_db
from app.models import Organization, Staff
from app.schemas.organization import (
    OrganizationPublic,
    OrganizationResponse,
    OrganizationSettingsUpdate,
    OrganizationSummary,
)
from app.api.dependencies import require_roles, get_current_staff
from app.core.permissions import ORG_SETTINGS_ROLES, PAYMENT_VIEW_ROLES
from app.services.organization_service import organization_service

logger = logging.getLogger(__name__)

# Mounted at /organizations: no authentication, used before sign-in
public_router = APIRouter()

# Mounted at /organization: the signed-in staff member's own organization
router = APIRouter()


# ==================== PUBLIC LOOKUP ====================

@public_router.get("/lookup", response_model=List[OrganizationPublic])
async def lookup_organization(
    code: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db)
):
    """
    Case-insensitive exact match on the organization code.
    Inactive organizations are returned too; the app reports them separately.
    """
    organizations = await organization_service.get_organization_by_code(db, code)
    return [OrganizationPublic.model_validate(org) for org in organizations]


@public_router.get("/{organization_id}", response_model=OrganizationPublic)
async def get_organization(
    organization_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Canonical public fields for a cached organization"""
    organization = await db.get(Organization, organization_id)
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )
    return OrganizationPublic.model_validate(organization)


# ==================== ORGANIZATION MANAGEMENT ====================

async def _load_own_organization(db: AsyncSession, staff: Staff) -> Organization:
    organization = await db.get(Organization, staff.organization_id)
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )
    return organization


@router.get("", response_model=OrganizationResponse)
async def get_my_organization(
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    """Get the signed-in staff member's organization (any role)"""
    organization = await _load_own_organization(db, current_staff)
    return OrganizationResponse.model_validate(organization)


@router.get("/summary", response_model=OrganizationSummary)
async def get_organization_summary(
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    """Dashboard overview for any role; the payment total is left out for roles without payment access"""
    return await organization_service.get_summary(
        db,
        current_staff.organization_id,
        include_payments=current_staff.role in PAYMENT_VIEW_ROLES,
    )


@router.patch("/settings", response_model=OrganizationResponse)
async def update_organization_settings(
    settings_update: OrganizationSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*ORG_SETTINGS_ROLES))
):
    """
    Update branding and kiosk settings (OWNER or ADMIN).
    Kiosk settings replace the stored kiosk block as a whole.
    """
    organization = await _load_own_organization(db, current_staff)
    update_data = settings_update.model_dump(exclude_unset=True)

    for field in ("name", "logo_url", "primary_color"):
        if field in update_data:
            setattr(organization, field, update_data[field])

    stored = dict(organization.settings or {})
    if settings_update.org_type is not None:
        stored["type"] = settings_update.org_type.value
    if settings_update.kiosk is not None:
        stored["kiosk"] = settings_update.kiosk.model_dump(mode="json")
    organization.settings = stored
    flag_modified(organization, "settings")

    await db.commit()
    await db.refresh(organization)

    logger.info(f"Staff {current_staff.id} updated settings for organization {organization.id}")
    return OrganizationResponse.model_validate(organization)
