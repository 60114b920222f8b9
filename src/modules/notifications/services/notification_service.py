# modules/notifications/services/notification_service.py
import logging
from typing import Dict, Iterable, List, Optional

from modules.documents.exceptions import NotFoundError
from modules.notifications.models.notification import Notification, NotificationType
from modules.notifications.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

TITLES = {
    NotificationType.NEW_DOCUMENT: "Nuevo documento",
    NotificationType.NEW_VERSION: "Nueva versión de documento",
    NotificationType.SIGNATURE_PENDING: "Firma pendiente",
    NotificationType.FULLY_SIGNED: "Documento firmado por todos",
    NotificationType.DOCUMENT_REJECTED: "Documento rechazado",
}

MESSAGES = {
    NotificationType.NEW_DOCUMENT:
        'Se ha subido un nuevo documento "{document_name}" en el proyecto "{project_name}".',
    NotificationType.NEW_VERSION:
        'Nueva versión del documento "{document_name}" en el proyecto "{project_name}".',
    NotificationType.SIGNATURE_PENDING:
        'Tienes una firma pendiente en el documento "{document_name}" del proyecto "{project_name}".',
    NotificationType.FULLY_SIGNED:
        'El documento "{document_name}" fue firmado por todos los participantes en el proyecto "{project_name}".',
    NotificationType.DOCUMENT_REJECTED:
        'El documento "{document_name}" fue rechazado en el proyecto "{project_name}".',
}

class NotificationTemplate:
    def __init__(self, user_id: int, title: str, message: str):
        self.user_id = user_id
        self.title = title
        self.message = message

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'title': self.title,
            'message': self.message
        }

class DocumentNotification(NotificationTemplate):
    def __init__(self, user_id: int, notification_type: NotificationType, params: Dict[str, str]):
        if notification_type not in MESSAGES:
            raise ValueError(f"Tipo de notificación no soportado: {notification_type}")
        message = MESSAGES[notification_type].format(**params)
        if notification_type == NotificationType.DOCUMENT_REJECTED and params.get("comment"):
            message += f" Comentario: {params['comment']}"
        super().__init__(user_id, TITLES[notification_type], message)
        self.type = notification_type

class NotificationService:
    def __init__(self, repository: NotificationRepository):
        self.notification_repository = repository

    def notify(
        self,
        notification_type: NotificationType,
        recipient_ids: Iterable[int],
        params: Dict[str, str],
        action_link: Optional[str] = None,
    ) -> List[Notification]:
        """Crea una notificación interna por destinatario (sin repetir usuarios)."""
        recipients = list(dict.fromkeys(recipient_ids))
        if not recipients:
            return []
        notifications = []
        for user_id in recipients:
            template = DocumentNotification(user_id, notification_type, params)
            notifications.append(Notification(
                user_id=template.user_id,
                type=template.type,
                title=template.title,
                message=template.message,
                action_link=action_link,
            ))
        saved = self.notification_repository.save_all(notifications)
        logger.info("Sent %s notification to users %s", notification_type.value, recipients)
        return saved

    def get_notifications(self, user_id: int, only_unread: bool = False) -> List[Notification]:
        return self.notification_repository.find_by_user_id(user_id, only_unread)

    def mark_as_read(self, notification_id: int, user_id: int) -> Notification:
        """Solo el destinatario puede marcarla; para cualquier otro no existe."""
        notif = self.notification_repository.find_by_id(notification_id)
        if not notif or notif.user_id != user_id:
            raise NotFoundError("Notificación no encontrada")
        return self.notification_repository.mark_read(notif)
