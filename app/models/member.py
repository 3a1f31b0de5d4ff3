"""
Member and family group models
"""
from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, Date, Text, Index,
    Enum as SQLEnum, text,
)
from sqlalchemy.orm import relationship
import enum

from app.models.base import Base, TimestampMixin, enum_values


class MemberStatus(str, enum.Enum):
    """Member lifecycle"""
    PENDING_INVITE = "pending_invite"  # Created by front desk, not registered
    PENDING_REGISTRATION = "pending_registration"  # Phone verified, profile incomplete
    ACTIVE = "active"  # Fully registered, has a QR token
    INACTIVE = "inactive"  # Expired or deactivated


class RelationshipType(str, enum.Enum):
    SELF = "self"
    SPOUSE = "spouse"
    CHILD = "child"
    PARENT = "parent"
    IN_LAW = "in_law"
    SIBLING = "sibling"
    OTHER = "other"


class FamilyGroup(Base, TimestampMixin):
    """
    A household inside one organization.

    ``prime_member_id`` is filled in after the prime member row exists, so it
    is nullable (see member_service.complete_profile).
    """
    __tablename__ = "family_groups"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    prime_member_id = Column(
        Integer,
        ForeignKey("members.id", ondelete="SET NULL", use_alter=True, name="fk_family_groups_prime_member"),
        nullable=True,
    )

    members = relationship(
        "Member",
        back_populates="family_group",
        foreign_keys="Member.family_group_id",
    )


class Member(Base, TimestampMixin):
    """
    Organization member.

    ``qr_token`` is the only credential used at check-in; it is assigned once by
    the service when the member becomes active and never changes.
    """
    __tablename__ = "members"
    __table_args__ = (
        # At most one prime member per family group
        Index(
            "uq_members_family_prime",
            "family_group_id",
            unique=True,
            postgresql_where=text("is_prime_member"),
            sqlite_where=text("is_prime_member = 1"),
        ),
        Index("ix_members_org_phone", "organization_id", "phone"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    family_group_id = Column(Integer, ForeignKey("family_groups.id", ondelete="SET NULL"), nullable=True, index=True)

    phone = Column(String(20), nullable=True)  # Only independent members sign in
    email = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    photo_url = Column(Text, nullable=True)

    status = Column(
        SQLEnum(MemberStatus, name="member_status", values_callable=enum_values),
        default=MemberStatus.PENDING_INVITE,
        nullable=False,
    )
    is_prime_member = Column(Boolean, default=False, nullable=False)
    is_independent = Column(Boolean, default=True, nullable=False)
    relationship_to_prime = Column(
        SQLEnum(RelationshipType, name="relationship_type", values_callable=enum_values),
        default=RelationshipType.SELF,
        nullable=False,
    )
    membership_date = Column(Date, nullable=True)
    qr_token = Column(String(64), unique=True, nullable=True, index=True)

    # Push notifications
    push_token = Column(String(255), nullable=True)
    notifications_enabled = Column(Boolean, default=False, nullable=False)

    # Relationships
    organization = relationship("Organization", back_populates="members")
    family_group = relationship(
        "FamilyGroup",
        back_populates="members",
        foreign_keys=[family_group_id],
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Member(id={self.id}, org_id={self.organization_id}, status={self.status})>"
