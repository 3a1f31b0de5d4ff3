"""
Identity accounts, staff membership and phone OTP models
"""
from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum as SQLEnum, DateTime
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin, enum_values


class StaffRole(str, enum.Enum):
    """Dashboard roles, most to least privileged"""
    OWNER = "owner"  # Full access, can transfer ownership
    ADMIN = "admin"  # Full access to all features
    TREASURER = "treasurer"  # Payments focus
    SECRETARY = "secretary"  # Members and announcements focus
    VOLUNTEER = "volunteer"  # Check-in only
    VIEWER = "viewer"  # Read-only


class User(Base, TimestampMixin):
    """
    Identity account for staff email/password sign-in
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(200), nullable=True)

    # Status & Security
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)

    # Relationships
    staff_memberships = relationship("Staff", back_populates="user")


class Staff(Base, TimestampMixin):
    """
    A user's role inside one organization.

    The staff row's organization scopes every dashboard query.
    """
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    role = Column(
        SQLEnum(StaffRole, name="staff_role", values_callable=enum_values),
        default=StaffRole.VIEWER,
        nullable=False,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="staff")
    user = relationship("User", back_populates="staff_memberships")


class PhoneOtp(Base, TimestampMixin):
    """One-time passcode issued to a phone number (only the hash is stored)"""
    __tablename__ = "phone_otps"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), nullable=False, index=True)
    code_hash = Column(String(255), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    consumed_at = Column(DateTime, nullable=True)

    @property
    def is_expired(self) -> bool:
        return datetime.utcnow() > self.expires_at

    @property
    def is_consumed(self) -> bool:
        return self.consumed_at is not None
