"""
Check-in API Endpoints - front desk
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime
from typing import List, Optional

from app.db.session import get_db
from app.models import Staff
from app.schemas.check_in import CheckInCreate, CheckInResponse, CheckInResult, CheckInWithMember
from app.schemas.member import MemberResponse
from app.api.dependencies import require_roles
from app.core.permissions import CHECK_IN_ROLES
from app.services.check_in_service import check_in_service
from app.services.member_service import member_service

router = APIRouter()


@router.get("/resolve", response_model=MemberResponse)
async def resolve_qr_token(
    token: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*CHECK_IN_ROLES))
):
    """Look up the member for a scanned QR payload"""
    member = await member_service.get_member_by_qr_token(db, current_staff.organization_id, token)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found. Invalid QR code."
        )
    return MemberResponse.model_validate(member)


@router.get("/search", response_model=List[MemberResponse])
async def search_members(
    q: str = Query(""),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*CHECK_IN_ROLES))
):
    """Manual lookup by name or phone; an empty result is not an error"""
    members = await member_service.search_members(db, current_staff.organization_id, q)
    return [MemberResponse.model_validate(m) for m in members]


@router.post("", response_model=CheckInResult, status_code=status.HTTP_201_CREATED)
async def create_check_in(
    check_in_data: CheckInCreate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*CHECK_IN_ROLES))
):
    """
    Record a visit. Members who are not active are still checked in and the
    response carries a warning for the desk.
    """
    member = await member_service.get_member(db, current_staff.organization_id, check_in_data.member_id)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )

    check_in, warning = await check_in_service.record_check_in(
        db, member, staff=current_staff, notes=check_in_data.notes
    )
    return CheckInResult(
        check_in=CheckInResponse.model_validate(check_in),
        member=MemberResponse.model_validate(member),
        warning=warning,
    )


@router.get("/recent", response_model=List[CheckInWithMember])
async def recent_check_ins(
    limit: int = Query(20, ge=1, le=100),
    since: Optional[datetime] = Query(None, description="Only check-ins at or after this time (UTC)"),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*CHECK_IN_ROLES))
):
    check_ins = await check_in_service.recent_check_ins(
        db, current_staff.organization_id, limit=limit, since=since
    )
    return [CheckInWithMember.model_validate(c) for c in check_ins]
