"""
SQLAlchemy models - Import all for Alembic autogenerate
"""
from app.models.base import Base, TimestampMixin

# Import all models
from app.models.organization import Organization
from app.models.user import User, Staff, StaffRole, PhoneOtp
from app.models.member import FamilyGroup, Member, MemberStatus, RelationshipType
from app.models.activity import CheckIn, Payment, PaymentMethod
from app.models.announcement import Announcement

# Export all for easy imports
__all__ = [
    "Base",
    "TimestampMixin",
    "Organization",
    "User",
    "Staff",
    "StaffRole",
    "PhoneOtp",
    "FamilyGroup",
    "Member",
    "MemberStatus",
    "RelationshipType",
    "CheckIn",
    "Payment",
    "PaymentMethod",
    "Announcement",
]
