"""
Member API Endpoints - staff dashboard
Every query is scoped to the signed-in staff member's organization
"""
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from typing import List, Optional
import logging

from app.db.session import get_db
from app.models import Member, MemberStatus, Staff
from app.schemas.check_in import CheckInResponse
from app.schemas.member import MemberCreate, MemberResponse, MemberUpdate, MemberWithFamily
from app.api.dependencies import get_current_staff, require_roles
from app.core.permissions import MEMBER_EDIT_ROLES, MEMBER_DELETE_ROLES
from app.services.check_in_service import check_in_service
from app.services.member_service import member_service, assign_qr_token

logger = logging.getLogger(__name__)

router = APIRouter()


async def _get_member_or_404(db: AsyncSession, staff: Staff, member_id: int) -> Member:
    member = await member_service.get_member(db, staff.organization_id, member_id)
    if not member:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found"
        )
    return member


@router.get("", response_model=List[MemberResponse])
async def list_members(
    search: Optional[str] = Query(None, description="Match first name, last name or phone"),
    member_status: Optional[MemberStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    """List members of the staff member's organization"""
    query = select(Member).where(Member.organization_id == current_staff.organization_id)

    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(
                Member.first_name.ilike(pattern),
                Member.last_name.ilike(pattern),
                Member.phone.ilike(pattern),
            )
        )
    if member_status is not None:
        query = query.where(Member.status == member_status)

    result = await db.execute(
        query.order_by(Member.last_name, Member.first_name).offset(skip).limit(limit)
    )
    return [MemberResponse.model_validate(m) for m in result.scalars().all()]


@router.post("", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
async def create_member(
    member_data: MemberCreate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*MEMBER_EDIT_ROLES))
):
    """Front-desk registration; the member finishes signing up in the app"""
    try:
        member = await member_service.register_member(db, current_staff.organization_id, member_data)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    return MemberResponse.model_validate(member)


@router.get("/{member_id}", response_model=MemberWithFamily)
async def get_member(
    member_id: int,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    member = await _get_member_or_404(db, current_staff, member_id)
    family = await member_service.get_family_members(db, member)

    response = MemberWithFamily.model_validate(member)
    response.family_members = [MemberResponse.model_validate(m) for m in family]
    return response


@router.get("/{member_id}/check-ins", response_model=List[CheckInResponse])
async def member_check_ins(
    member_id: int,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff)
):
    """Check-in history shown on the member detail page"""
    member = await _get_member_or_404(db, current_staff, member_id)
    check_ins = await check_in_service.member_history(db, member, limit=limit)
    return [CheckInResponse.model_validate(c) for c in check_ins]


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_member(
    member_id: int,
    member_update: MemberUpdate,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*MEMBER_EDIT_ROLES))
):
    """
    Edit a member. Setting ``status`` to inactive deactivates them;
    the first move to active assigns the check-in token.
    """
    member = await _get_member_or_404(db, current_staff, member_id)
    update_data = member_update.model_dump(exclude_unset=True)

    new_phone = update_data.get("phone")
    if new_phone and new_phone != member.phone:
        existing = await member_service.get_member_by_phone(db, current_staff.organization_id, new_phone)
        if existing and existing.id != member.id:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A member with this phone number already exists"
            )

    for field, value in update_data.items():
        setattr(member, field, value)
    assign_qr_token(member)

    await db.commit()
    await db.refresh(member)
    return MemberResponse.model_validate(member)


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_member(
    member_id: int,
    db: AsyncSession = Depends(get_db),
    current_staff: Staff = Depends(require_roles(*MEMBER_DELETE_ROLES))
):
    member = await _get_member_or_404(db, current_staff, member_id)
    await db.delete(member)
    await db.commit()
    logger.info(f"Staff {current_staff.id} deleted member {member_id}")
