import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from config import settings
from modules.documents.models.document import Document, VersionStatus
from modules.documents.models.user import UserRole
from modules.documents.repositories.document_repository import DocumentRepository
from modules.documents.services.document_service import DocumentService, IncomingFile
from modules.documents.exceptions import (
    ConflictError, DuplicateSignerError, PermissionDeniedError, ValidationError
)
from modules.documents.services.permission import require_signer
from modules.documents.services.stamping import PdfStamper
from modules.documents.services.version_locks import VersionLockRegistry, version_locks
from modules.notifications.models.notification import NotificationType

logger = logging.getLogger(__name__)

# Roles avisados cuando un documento queda firmado por todos
PRIVILEGED_ROLES = (UserRole.ADMINISTRATOR, UserRole.CLIENT)

# Intentos de asignar número de versión antes de ConflictError
VERSION_NUMBER_ATTEMPTS = 5


@dataclass
class SignOutcome:
    version_id: int
    completed: bool


class SignatureWorkflowService:
    """
    Flujo de subida, firma y rechazo de versiones de documentos.

    Estados de una versión: PENDING -> SIGNED (cuando todos los firmantes no
    rechazados han firmado) o PENDING -> REJECTED (primer rechazo).

    Colaboradores externos:
      - storage:   save_file / save_signed_file / read_file / discard
      - notifier:  notify(type, recipient_ids, params, action_link)
      - directory: get_project_members / resolve_project_name
    El usuario que actúa se recibe explícitamente en cada operación.
    """

    def __init__(self, session: Session, storage, notifier, directory,
                 stamper: Optional[PdfStamper] = None,
                 locks: Optional[VersionLockRegistry] = None):
        self.db = session
        self.repo = DocumentRepository(session)
        self.storage = storage
        self.notifier = notifier
        self.directory = directory
        self.stamper = stamper or PdfStamper(settings.SIGNATURE_WIDTH, settings.SIGNATURE_HEIGHT)
        self.locks = locks or version_locks

    # --- upload ----------------------------------------------------------

    def upload_document(self, actor_id: int, file: Optional[IncomingFile], document_name: str,
                        project_id: int, signer_ids: Iterable[int],
                        change_description: Optional[str] = None) -> Tuple[int, int]:
        """Crea el documento con su primera versión. La lista de firmantes puede estar vacía."""
        DocumentService.validate_pdf(file)
        if not document_name or not document_name.strip():
            raise ValidationError("Debe indicar el nombre del documento")
        signer_ids = list(signer_ids or [])

        project_name = self.directory.resolve_project_name(project_id)
        self._check_signers(project_id, signer_ids)

        path = self.storage.save_file(file.contents, project_id, project_name, document_name)
        try:
            with self._transaction():
                document = self.repo.create_document(document_name, project_id, actor_id)
                version = self.repo.create_version(
                    document.id, 1, path, file.content_type,
                    change_description or "Versión inicial", actor_id,
                )
                if signer_ids:
                    self.repo.assign_signers(version.id, signer_ids)
                document_id, version_id = document.id, version.id
        except Exception:
            self.storage.discard(path)
            raise

        logger.info("Document %s uploaded by user %s as version %s", document_id, actor_id, version_id)

        members = [m.user_id for m in self.directory.get_project_members(project_id)]
        self._notify(NotificationType.NEW_DOCUMENT, members, document_name, project_name, project_id, document_id)
        return document_id, version_id

    def upload_new_version(self, actor_id: int, file: Optional[IncomingFile], document_id: int,
                           signer_ids: Iterable[int], change_description: Optional[str] = None) -> int:
        """Agrega una versión a un documento existente; requiere al menos un firmante."""
        DocumentService.validate_pdf(file)
        signer_ids = list(signer_ids or [])
        if not signer_ids:
            raise ValidationError("Debe indicar al menos un firmante")

        document = self.repo.get_document(document_id)
        project_id, document_name = document.project_id, document.name
        project_name = self.directory.resolve_project_name(project_id)
        self._check_signers(project_id, signer_ids)

        path = self.storage.save_file(file.contents, project_id, project_name, document_name)
        try:
            version_id = self._create_next_version(
                document_id, path, file.content_type, change_description, actor_id, signer_ids
            )
        except Exception:
            self.storage.discard(path)
            raise

        logger.info("Version %s of document %s uploaded by user %s", version_id, document_id, actor_id)

        members = [m.user_id for m in self.directory.get_project_members(project_id)]
        self._notify(NotificationType.NEW_VERSION, members, document_name, project_name, project_id, document_id)
        return version_id

    def _create_next_version(self, document_id: int, path: str, mime_type: str,
                             change_description: Optional[str], actor_id: int,
                             signer_ids: List[int]) -> int:
        # Uploads to one document are serialised here and by a row lock on the
        # document; the unique constraint catches writers that skip both.
        with self.locks.hold(("document", document_id)):
            for attempt in range(1, VERSION_NUMBER_ATTEMPTS + 1):
                try:
                    with self._transaction():
                        self.repo.lock_document(document_id)
                        number = self.repo.get_next_version_number(document_id)
                        version = self.repo.create_version(
                            document_id, number, path, mime_type, change_description, actor_id
                        )
                        self.repo.assign_signers(version.id, signer_ids)
                        version_id = version.id
                    return version_id
                except DuplicateSignerError:
                    raise
                except ConflictError:
                    if attempt == VERSION_NUMBER_ATTEMPTS:
                        raise
                    logger.warning("Version number %s of document %s taken (attempt %s)",
                                   number, document_id, attempt)

    # --- sign ------------------------------------------------------------

    def sign_version(self, actor_id: int, version_id: int, signature: Optional[bytes],
                     x_ratio: Optional[float] = None, y_ratio: Optional[float] = None) -> SignOutcome:
        if not signature:
            raise ValidationError("No se proporcionó firma")
        x_ratio = settings.DEFAULT_X_RATIO if x_ratio is None else x_ratio
        y_ratio = settings.DEFAULT_Y_RATIO if y_ratio is None else y_ratio

        with self.locks.hold(version_id):
            version = self.repo.get_version_info(version_id)
            require_signer(self.db, version_id, actor_id, "firmar")
            document = version.document
            project_name = self.directory.resolve_project_name(document.project_id)

            with self._transaction():
                new_path = self._stamp_current_file(version_id, document, project_name, signature, x_ratio, y_ratio)
                if not self.repo.record_signature(version_id, actor_id):
                    self.storage.discard(new_path)
                    raise PermissionDeniedError("No tiene permisos para firmar este documento")

        logger.info("User %s signed version %s", actor_id, version_id)

        pending = self.repo.pending_signer_ids(version_id)
        self._notify(NotificationType.SIGNATURE_PENDING, pending, document.name, project_name,
                     document.project_id, document.id)

        if not self.repo.is_version_complete(version_id):
            return SignOutcome(version_id=version_id, completed=False)

        if self.repo.promote_to_master_list(version_id):
            logger.info("Version %s fully signed and added to the master list", version_id)
            members = self.directory.get_project_members(document.project_id)
            privileged = [m.user_id for m in members if m.role in PRIVILEGED_ROLES]
            self._notify(NotificationType.FULLY_SIGNED, privileged, document.name, project_name,
                         document.project_id, document.id)
        completed = self.repo.get_version_info(version_id).status == VersionStatus.SIGNED
        return SignOutcome(version_id=version_id, completed=completed)

    def _stamp_current_file(self, version_id: int, document: Document, project_name: str,
                            signature: bytes, x_ratio: float, y_ratio: float) -> str:
        # The lock serialises signers in this process; the compare-and-swap on
        # file_path catches writers from other processes.
        for attempt in (1, 2):
            current_path = self.repo.get_version_info(version_id).file_path
            stamped = self.stamper.stamp(self.storage.read_file(current_path), signature, x_ratio, y_ratio)
            new_path = self.storage.save_signed_file(stamped, document.project_id, project_name, document.name)
            if self.repo.update_version_file(version_id, new_path, expected_path=current_path):
                return new_path
            self.storage.discard(new_path)
            logger.warning("File of version %s changed while stamping (attempt %s)", version_id, attempt)
        raise ConflictError("El documento fue modificado mientras se firmaba, intente de nuevo")

    # --- reject ----------------------------------------------------------

    def reject_version(self, actor_id: int, version_id: int, comment: Optional[str]) -> None:
        if not comment or not comment.strip():
            raise ValidationError("Debe indicar el motivo del rechazo")
        comment = comment.strip()

        with self.locks.hold(version_id):
            version = self.repo.get_version_info(version_id)
            require_signer(self.db, version_id, actor_id, "rechazar")
            uploader_id = version.uploaded_by
            document = version.document

            with self._transaction():
                if not self.repo.record_rejection(version_id, actor_id, comment):
                    raise PermissionDeniedError("No tiene permisos para rechazar este documento")

        logger.info("User %s rejected version %s", actor_id, version_id)

        project_name = self.directory.resolve_project_name(document.project_id)
        self._notify(NotificationType.DOCUMENT_REJECTED, [uploader_id], document.name, project_name,
                     document.project_id, document.id, comment=comment)

    # --- helpers ---------------------------------------------------------

    def _check_signers(self, project_id: int, signer_ids: List[int]) -> None:
        if not signer_ids:
            return
        members = {m.user_id for m in self.directory.get_project_members(project_id)}
        outsiders = [uid for uid in signer_ids if uid not in members]
        if outsiders:
            raise ValidationError(f"Usuarios que no pueden firmar en este proyecto: {outsiders}")

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def _notify(self, notification_type: NotificationType, recipients: Iterable[int], document_name: str,
                project_name: str, project_id: int, document_id: int, **extra) -> None:
        recipients = list(recipients)
        if not recipients:
            return
        params = {"document_name": document_name, "project_name": project_name, **extra}
        try:
            self.notifier.notify(
                notification_type,
                recipients,
                params,
                action_link=f"/projects/{project_id}/documents/{document_id}",
            )
        except Exception:
            # Persisted workflow state stays; only the notice is lost
            self.db.rollback()
            logger.exception("Could not send %s notification for document %s", notification_type.value, document_id)
