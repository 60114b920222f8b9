from typing import List, Optional
from sqlalchemy.orm import Session

from modules.notifications.models.notification import Notification

class NotificationRepository:
    """Notificaciones internas; cada escritura es su propia transacción."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def save_all(self, notifications: List[Notification]) -> List[Notification]:
        self.db.add_all(notifications)
        self.db.commit()
        return notifications

    def find_by_id(self, notification_id: int) -> Optional[Notification]:
        return self.db.get(Notification, notification_id)

    def find_by_user_id(self, user_id: int, only_unread: bool = False) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if only_unread:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()

    def mark_read(self, notification: Notification) -> Notification:
        notification.read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification
