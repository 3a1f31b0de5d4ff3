"""
Announcement Service
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Announcement

logger = logging.getLogger(__name__)


def set_published(announcement: Announcement, published: bool) -> None:
    """
    Toggle publication. ``published_at`` is stamped on the first publish only;
    unpublishing and republishing keep it.
    """
    announcement.is_published = published
    if published and announcement.published_at is None:
        announcement.published_at = datetime.utcnow()


class AnnouncementService:

    async def get_announcement(
        self, db: AsyncSession, organization_id: int, announcement_id: int
    ) -> Optional[Announcement]:
        result = await db.execute(
            select(Announcement).where(
                Announcement.id == announcement_id,
                Announcement.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_announcements(
        self, db: AsyncSession, organization_id: int, published_only: bool = False
    ) -> List[Announcement]:
        query = select(Announcement).where(Announcement.organization_id == organization_id)
        if published_only:
            query = query.where(Announcement.is_published.is_(True)).order_by(
                Announcement.published_at.desc(), Announcement.id.desc()
            )
        else:
            query = query.order_by(Announcement.created_at.desc(), Announcement.id.desc())
        result = await db.execute(query)
        return list(result.scalars().all())

    async def publish(self, db: AsyncSession, announcement: Announcement, published: bool) -> Announcement:
        was_published = announcement.is_published
        set_published(announcement, published)
        await db.commit()
        await db.refresh(announcement)
        if published and not was_published:
            logger.info(f"Published announcement {announcement.id} for organization {announcement.organization_id}")
        return announcement


announcement_service = AnnouncementService()
