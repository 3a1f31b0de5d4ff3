"""
Public donation kiosk configuration
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.db.session import get_db
from app.schemas.kiosk import KioskConfigResponse, KioskOrganization, KioskSettings
from app.services.organization_service import organization_service

router = APIRouter()


@router.get("/{org_code}", response_model=KioskConfigResponse)
async def get_kiosk_config(
    org_code: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Branding and kiosk settings for an active organization.
    No authentication; the kiosk device decides what to show when disabled.
    """
    organization = await organization_service.get_active_organization_by_code(db, org_code)
    if not organization:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )

    return KioskConfigResponse(
        organization=KioskOrganization(
            id=organization.id,
            name=organization.name,
            org_code=organization.org_code,
            logo_url=organization.logo_url,
            primary_color=organization.primary_color or settings.DEFAULT_PRIMARY_COLOR,
        ),
        settings=KioskSettings.from_settings_blob(organization.settings),
    )
