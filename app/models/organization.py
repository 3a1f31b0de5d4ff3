"""
Organization (tenant) model
"""
from sqlalchemy import Column, Integer, String, Boolean, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, JSONType


class Organization(Base, TimestampMixin):
    """
    A tenant: temple, church, or any membership organization.

    Organizations are deactivated, never deleted by clients. ``org_code`` is
    stored upper-cased and matched case-insensitively.
    """
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False)
    org_code = Column(String(20), unique=True, nullable=False, index=True)
    logo_url = Column(Text, nullable=True)
    primary_color = Column(String(7), nullable=True)  # Hex color code
    is_active = Column(Boolean, default=True, nullable=False)

    # Flexible settings storage: {"type": "temple", "kiosk": {...}}
    settings = Column(JSONType, nullable=True, default=dict)

    # Relationships
    staff = relationship("Staff", back_populates="organization", cascade="all, delete-orphan")
    members = relationship("Member", back_populates="organization")

    def __repr__(self):
        return f"<Organization(id={self.id}, code='{self.org_code}', active={self.is_active})>"
