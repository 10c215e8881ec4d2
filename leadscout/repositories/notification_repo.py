"""
Notification repository.
"""
import uuid
from typing import List

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.models.notification import Notification
from leadscout.repositories.base import BaseRepository


class NotificationRepository(BaseRepository[Notification]):

    def __init__(self, session: AsyncSession):
        super().__init__(Notification, session)

    async def list_for_user(self, user_id: uuid.UUID, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        query = query.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()
