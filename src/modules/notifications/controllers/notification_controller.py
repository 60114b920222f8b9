from typing import List

from fastapi import APIRouter, Depends, Query

from modules.auth.dependencies import get_current_user
from modules.documents.models.user import User
from modules.notifications.dependencies import get_notification_service
from modules.notifications.models.schemas import NotificationResponse
from modules.notifications.services.notification_service import NotificationService

router = APIRouter()

@router.get("/me", response_model=List[NotificationResponse])
def my_notifications(
    only_unread: bool = Query(False, description="Solo las no leídas"),
    current_user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    """Bandeja del usuario autenticado, las más recientes primero."""
    return notifications.get_notifications(current_user.id, only_unread)

@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def read_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    notifications: NotificationService = Depends(get_notification_service),
):
    return notifications.mark_as_read(notification_id, current_user.id)
