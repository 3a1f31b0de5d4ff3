"""
Check-in Schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.schemas.member import MemberResponse


class CheckInCreate(BaseModel):
    member_id: int
    notes: Optional[str] = Field(None, max_length=500)


class CheckInResponse(BaseModel):
    id: int
    organization_id: int
    member_id: int
    checked_in_by: Optional[int] = None
    checked_in_at: datetime
    notes: Optional[str] = None

    class Config:
        from_attributes = True


class CheckInResult(BaseModel):
    """A committed check-in; ``warning`` is set when the member was not active"""
    check_in: CheckInResponse
    member: MemberResponse
    warning: Optional[str] = None


class CheckInWithMember(CheckInResponse):
    member: MemberResponse
