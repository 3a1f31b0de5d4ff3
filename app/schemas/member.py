"""
Member Schemas
Pydantic models for members, family groups and member-app profile flows
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from app.core.config import settings
from app.models.member import MemberStatus, RelationshipType
from app.utils.validators import normalize_phone, require_name, validate_email


class MemberResponse(BaseModel):
    """Full member row as seen by staff and by the member themself"""
    id: int
    organization_id: int
    family_group_id: Optional[int] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    first_name: str
    last_name: str
    photo_url: Optional[str] = None
    status: MemberStatus
    is_prime_member: bool
    is_independent: bool
    relationship_to_prime: RelationshipType
    membership_date: Optional[date] = None
    qr_token: Optional[str] = None
    notifications_enabled: bool = False
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MemberWithFamily(MemberResponse):
    family_members: List[MemberResponse] = []


class MemberCreate(BaseModel):
    """Front-desk registration"""
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return require_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return require_name(value, "Last name")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return normalize_phone(value, settings.DEFAULT_COUNTRY_CODE)

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        return validate_email(value)


class MemberUpdate(BaseModel):
    """Staff edits; unset fields are left unchanged"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = None
    phone: Optional[str] = None
    status: Optional[MemberStatus] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        return validate_email(value)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return normalize_phone(value, settings.DEFAULT_COUNTRY_CODE)


class ProfileSetup(BaseModel):
    """Self-registration after OTP verification"""
    first_name: str
    last_name: str
    email: Optional[str] = None
    photo_base64: Optional[str] = Field(None, description="JPEG payload from the photo picker")

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return require_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return require_name(value, "Last name")

    @field_validator("email")
    @classmethod
    def check_email(cls, value: Optional[str]) -> Optional[str]:
        return validate_email(value)


class FamilyMemberCreate(BaseModel):
    """Add a household member; dependents do not sign in and get no QR token"""
    first_name: str
    last_name: str
    relationship_to_prime: RelationshipType = RelationshipType.SPOUSE
    is_independent: bool = True
    photo_base64: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def check_first_name(cls, value: str) -> str:
        return require_name(value, "First name")

    @field_validator("last_name")
    @classmethod
    def check_last_name(cls, value: str) -> str:
        return require_name(value, "Last name")

    @field_validator("relationship_to_prime")
    @classmethod
    def not_self(cls, value: RelationshipType) -> RelationshipType:
        if value == RelationshipType.SELF:
            raise ValueError("Choose how this person is related to you")
        return value


class PushTokenUpdate(BaseModel):
    push_token: str = Field(..., min_length=1, max_length=255)
