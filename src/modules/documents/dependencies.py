from fastapi import Depends
from sqlalchemy.orm import Session

from database import get_db
from modules.documents.services.signature_workflow import SignatureWorkflowService
from modules.documents.services.storage import LocalFileStorage, get_storage
from modules.notifications.repositories.notification_repository import NotificationRepository
from modules.notifications.services.notification_service import NotificationService
from modules.projects.services.project_directory import ProjectDirectory

def get_file_storage() -> LocalFileStorage:
    return get_storage()

def get_workflow(
    db: Session = Depends(get_db),
    storage: LocalFileStorage = Depends(get_file_storage),
) -> SignatureWorkflowService:
    return SignatureWorkflowService(
        db,
        storage=storage,
        notifier=NotificationService(NotificationRepository(db)),
        directory=ProjectDirectory(db),
    )
