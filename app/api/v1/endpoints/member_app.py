"""
Member App API Endpoints
Authenticated with a member session token from phone OTP
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from typing import List
import logging

from app.db.session import get_db
from app.models import Member, Organization
from app.schemas.announcement import AnnouncementResponse
from app.schemas.member import (
    FamilyMemberCreate, MemberResponse, MemberWithFamily, ProfileSetup, PushTokenUpdate,
)
from app.api.dependencies import get_current_member, get_current_phone
from app.services.announcement_service import announcement_service
from app.services.member_service import member_service
from app.services.s3_service import S3Service, StorageUploadError, get_s3_service
from app.utils.qr import render_qr_png

logger = logging.getLogger(__name__)

router = APIRouter()


def _upload_photo(storage: S3Service, payload: str, prefix: str, owner_id) -> str:
    try:
        return storage.upload_base64_image(payload, prefix=prefix, owner_id=owner_id)
    except StorageUploadError as e:
        logger.error(f"Photo upload failed for {prefix}-{owner_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to upload photo. Please try again."
        )


@router.get("", response_model=MemberWithFamily)
async def get_me(
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db)
):
    """The signed-in member's own record with their household"""
    family = await member_service.get_family_members(db, member)
    response = MemberWithFamily.model_validate(member)
    response.family_members = [MemberResponse.model_validate(m) for m in family]
    return response


@router.put("/profile", response_model=MemberResponse)
async def complete_profile(
    profile: ProfileSetup,
    organization_id: int = Query(...),
    phone: str = Depends(get_current_phone),
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service)
):
    """
    Finish self-registration.
    The photo is uploaded before any row is written; if it fails nothing is saved.
    """
    organization = await db.get(Organization, organization_id)
    if not organization or not organization.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found"
        )

    photo_url = None
    if profile.photo_base64:
        photo_url = _upload_photo(storage, profile.photo_base64, "member", phone.lstrip("+"))

    try:
        member = await member_service.complete_profile(db, organization_id, phone, profile, photo_url)
    except SQLAlchemyError as e:
        logger.error(f"Profile setup failed for {phone} in organization {organization_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save profile. Please try again."
        )

    return MemberResponse.model_validate(member)


@router.get("/family", response_model=List[MemberResponse])
async def list_family(
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db)
):
    family = await member_service.get_family_members(db, member)
    return [MemberResponse.model_validate(m) for m in family]


@router.post("/family", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def add_family_member(
    family_member: FamilyMemberCreate,
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db),
    storage: S3Service = Depends(get_s3_service)
):
    """Add a household member (prime member only)"""
    if not member.is_prime_member:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the primary member can add family members"
        )

    photo_url = None
    if family_member.photo_base64:
        photo_url = _upload_photo(storage, family_member.photo_base64, "family", member.id)

    try:
        added = await member_service.add_family_member(db, member, family_member, photo_url)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MemberResponse.model_validate(added)


@router.get("/qr.png")
async def get_qr_image(member: Member = Depends(get_current_member)):
    """PNG of the member's check-in token"""
    if not member.qr_token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="QR code not available"
        )
    return Response(content=render_qr_png(member.qr_token), media_type="image/png")


@router.put("/push-token", response_model=MemberResponse)
async def register_push_token(
    token_update: PushTokenUpdate,
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db)
):
    member.push_token = token_update.push_token
    member.notifications_enabled = True
    await db.commit()
    await db.refresh(member)
    return MemberResponse.model_validate(member)


@router.delete("/push-token", response_model=MemberResponse)
async def clear_push_token(
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db)
):
    member.push_token = None
    member.notifications_enabled = False
    await db.commit()
    await db.refresh(member)
    return MemberResponse.model_validate(member)


@router.get("/news", response_model=List[AnnouncementResponse])
async def get_news(
    member: Member = Depends(get_current_member),
    db: AsyncSession = Depends(get_db)
):
    """Published announcements of the member's organization, newest first"""
    announcements = await announcement_service.list_announcements(
        db, member.organization_id, published_only=True
    )
    return [AnnouncementResponse.model_validate(a) for a in announcements]
