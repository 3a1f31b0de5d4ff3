"""
Announcement Schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    image_base64: Optional[str] = None
    publish: bool = False


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = Field(None, min_length=1)
    image_base64: Optional[str] = None


class AnnouncementResponse(BaseModel):
    id: int
    organization_id: int
    author_id: Optional[int] = None
    title: str
    content: str
    image_url: Optional[str] = None
    is_published: bool
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
