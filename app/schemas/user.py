"""
Pydantic schemas for identity: staff sign-in and member phone OTP
"""
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from datetime import datetime

from app.core.config import settings
from app.models.user import StaffRole
from app.utils.validators import normalize_phone, validate_otp_code


class StaffResponse(BaseModel):
    """Response schema for staff members"""
    id: int
    organization_id: int
    user_id: int
    name: str
    email: Optional[str] = None
    role: StaffRole
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class StaffLogin(BaseModel):
    """Schema for staff login"""
    email: EmailStr
    password: str


class Token(BaseModel):
    """JWT Token response schema"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class StaffToken(Token):
    staff: StaffResponse


class OtpRequest(BaseModel):
    """Request a one-time code by SMS"""
    phone: str

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return normalize_phone(value, settings.DEFAULT_COUNTRY_CODE)


class OtpVerify(BaseModel):
    """Verify a one-time code; ``organization_id`` lets the server pick the next screen"""
    phone: str
    code: str
    organization_id: Optional[int] = None

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        return normalize_phone(value, settings.DEFAULT_COUNTRY_CODE)

    @field_validator("code")
    @classmethod
    def check_code(cls, value: str) -> str:
        return validate_otp_code(value, settings.OTP_LENGTH)


class MemberSessionToken(Token):
    """Member session after OTP verification"""
    phone: str
    next_step: Optional[str] = Field(
        None, description="profile_setup or home, when organization_id was supplied"
    )
