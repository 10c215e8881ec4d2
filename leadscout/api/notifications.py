"""
Notification API routes.
"""
import uuid
from typing import List
from fastapi import APIRouter, Depends

from leadscout.api.deps import get_current_principal, get_notification_service
from leadscout.core.security import Principal
from leadscout.services.notification_service import NotificationService
from leadscout.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
async def list_notifications(
    unread_only: bool = False,
    principal: Principal = Depends(get_current_principal),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return await notification_service.list_for_user(principal.user_id, unread_only)


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    notification_service: NotificationService = Depends(get_notification_service)
):
    return await notification_service.mark_read(principal.user_id, notification_id)
