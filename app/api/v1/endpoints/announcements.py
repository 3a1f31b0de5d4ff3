"""
Announcement API Endpoints - staff authoring
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.core.config import settings
from app.db.session import get_db
from app.models import Announcement, Staff
from app.schemas.announcement import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from app.api.dependencies import get_current_staff, require_roles
from app.core.permissions import ANNOUNCEMENT_EDIT_ROLES
from app.services.announcement_service import announcement_service, set_published
from app.services.s3_service import S3Service, StorageUploadError, get_s3_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _upload_image(storage: S3Service, payload: str, staff: Staff) -> str:
    try:
        return storage.upload_base64_image(
            payload,
            prefix="announcement",
            owner_id=staff.organization_id,
            bucket_name=settings.S3_BUCKET_ANNOUNCEMENT_IMAGES,
        )
    except StorageUploadError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


async def _get_announcement_or_404(db: AsyncSession, staff: Staff, announcement_id: int) -> Announcement:
    announcement = await announcement_service.get_announcement(db, staff.organization_id, announcement_id)
    if not announcement:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Announcement not found"
        )
    return announcement


@router.get("", response_model=List[AnnouncementResponse])
async def list_announcements(
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    """Drafts and published announcements, newest first"""
    announcements = await announcement_service.list_announcements(db, current_staff.organization_id)
    return [AnnouncementResponse.model_validate(a) for a in announcements]


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    announcement_data: AnnouncementCreate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*ANNOUNCEMENT_EDIT_ROLES)),
    storage: S3Service = Depends(get_s3_service)
):
    image_url = None
    if announcement_data.image_base64:
        image_url = _upload_image(storage, announcement_data.image_base64, current_staff)

    announcement = Announcement(
        organization_id=current_staff.organization_id,
        author_id=current_staff.id,
        title=announcement_data.title,
        content=announcement_data.content,
        image_url=image_url,
    )
    set_published(announcement, announcement_data.publish)
    db.add(announcement)
    await db.commit()
    await db.refresh(announcement)
    return AnnouncementResponse.model_validate(announcement)


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    announcement = await _get_announcement_or_404(db, current_staff, announcement_id)
    return AnnouncementResponse.model_validate(announcement)


@router.patch("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: int,
    announcement_update: AnnouncementUpdate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*ANNOUNCEMENT_EDIT_ROLES)),
    storage: S3Service = Depends(get_s3_service)
):
    announcement = await _get_announcement_or_404(db, current_staff, announcement_id)
    update_data = announcement_update.model_dump(exclude_unset=True)

    image_payload = update_data.pop("image_base64", None)
    if image_payload:
        announcement.image_url = _upload_image(storage, image_payload, current_staff)

    for field, value in update_data.items():
        setattr(announcement, field, value)

    await db.commit()
    await db.refresh(announcement)
    return AnnouncementResponse.model_validate(announcement)


@router.post("/{announcement_id}/publish", response_model=AnnouncementResponse)
async def publish_announcement(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*ANNOUNCEMENT_EDIT_ROLES))
):
    """Publish; calling it again leaves ``published_at`` unchanged"""
    announcement = await _get_announcement_or_404(db, current_staff, announcement_id)
    announcement = await announcement_service.publish(db, announcement, True)
    return AnnouncementResponse.model_validate(announcement)


@router.post("/{announcement_id}/unpublish", response_model=AnnouncementResponse)
async def unpublish_announcement(
    announcement_id: int,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*ANNOUNCEMENT_EDIT_ROLES))
):
    announcement = await _get_announcement_or_404(db, current_staff, announcement_id)
    announcement = await announcement_service.publish(db, announcement, False)
    return AnnouncementResponse.model_validate(announcement)
