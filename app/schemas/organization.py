"""
Organization Schemas
Pydantic models for organization, signup and settings validation
"""
import enum
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, EmailStr, Field, field_validator

from app.core.config import settings
from app.schemas.check_in import CheckInWithMember
from app.schemas.kiosk import KioskSettings
from app.utils.validators import require_name, validate_org_name


class OrganizationType(str, enum.Enum):
    TEMPLE = "temple"
    CHURCH = "church"
    MOSQUE = "mosque"
    SYNAGOGUE = "synagogue"
    GURDWARA = "gurdwara"
    OTHER = "other"


class OrganizationPublic(BaseModel):
    """Fields a member device caches locally"""
    id: int
    name: str
    org_code: str
    logo_url: Optional[str] = None
    primary_color: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class OrganizationResponse(OrganizationPublic):
    """Schema for organization response (staff)"""
    slug: str
    settings: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: datetime


class OrganizationSettingsUpdate(BaseModel):
    """Schema for updating organization settings"""
    name: Optional[str] = Field(None, min_length=3, max_length=255)
    logo_url: Optional[str] = None
    primary_color: Optional[str] = Field(None, pattern="^#[0-9A-Fa-f]{6}$")
    org_type: Optional[OrganizationType] = None
    kiosk: Optional[KioskSettings] = None


class OrganizationSignup(BaseModel):
    """Staff signup: creates the identity account, organization and admin staff row"""
    org_name: str
    org_type: OrganizationType = OrganizationType.TEMPLE
    admin_name: str
    admin_email: EmailStr
    admin_password: str = Field(min_length=settings.MIN_PASSWORD_LENGTH)

    @field_validator("org_name")
    @classmethod
    def check_org_name(cls, value: str) -> str:
        return validate_org_name(value)

    @field_validator("admin_name")
    @classmethod
    def check_admin_name(cls, value: str) -> str:
        return require_name(value, "Your name")


class SignupResponse(BaseModel):
    """Signup result; ``org_code`` is what members type into the app"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    org_code: str
    organization: OrganizationResponse


class OrganizationSummary(BaseModel):
    """Dashboard overview; ``payments_last_30_days`` is None for roles that cannot view payments"""
    total_members: int
    todays_check_ins: int
    payments_last_30_days: Optional[Decimal] = None
    recent_check_ins: List[CheckInWithMember] = []
