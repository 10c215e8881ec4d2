"""
Notification dispatch.

Dispatch happens after the owning transaction commits. A failed
notification is logged and dropped; it never reverses a ledger change.
"""
import uuid
import logging
from abc import ABC, abstractmethod
from typing import List, Callable

from sqlmodel.ext.asyncio.session import AsyncSession

from leadscout.core.exceptions import NotFoundError, ForbiddenError
from leadscout.models.notification import Notification
from leadscout.repositories.notification_repo import NotificationRepository
from leadscout.schemas.notification import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationDispatcher(ABC):
    """Base interface for notification channels."""

    @abstractmethod
    async def notify(self, user_id: uuid.UUID, notification: NotificationPayload) -> None:
        """Deliver one notification."""
        pass

    async def dispatch(self, user_id: uuid.UUID, notification: NotificationPayload) -> None:
        """Fire-and-forget delivery."""
        try:
            await self.notify(user_id, notification)
        except Exception as e:
            logger.error(f"Notification {notification.type} for user {user_id} failed: {e}")


class InAppNotificationDispatcher(NotificationDispatcher):
    """Persists notifications in their own session."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def notify(self, user_id: uuid.UUID, notification: NotificationPayload) -> None:
        async with self.session_factory() as session:
            session.add(Notification(
                user_id=user_id,
                type=notification.type,
                title=notification.title(),
                message=notification.message(),
                payload=notification.model_dump(mode="json"),
            ))
            await session.commit()


class NotificationService:
    """Read side of in-app notifications."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notification_repo = NotificationRepository(session)

    async def list_for_user(self, user_id: uuid.UUID, unread_only: bool = False) -> List[Notification]:
        return await self.notification_repo.list_for_user(user_id, unread_only=unread_only)

    async def mark_read(self, user_id: uuid.UUID, notification_id: uuid.UUID) -> Notification:
        notification = await self.notification_repo.get(notification_id)
        if not notification:
            raise NotFoundError("Notification", str(notification_id))
        if notification.user_id != user_id:
            raise ForbiddenError()
        notification = await self.notification_repo.update(notification, {"read": True})
        await self.session.commit()
        return notification
