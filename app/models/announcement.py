"""
Announcement Model
News items authored by staff and shown in the member app feed
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin


class Announcement(Base, TimestampMixin):
    """
    Draft or published announcement.

    ``published_at`` records the first publication and is not moved by
    subsequent publish calls.
    """
    __tablename__ = "announcements"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)
    is_published = Column(Boolean, default=False, nullable=False)
    published_at = Column(DateTime, nullable=True)

    author = relationship("Staff")

    def __repr__(self):
        return f"<Announcement(id={self.id}, org_id={self.organization_id}, published={self.is_published})>"
