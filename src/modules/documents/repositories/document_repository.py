import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from modules.documents.models.document import Document, DocumentVersion, VersionStatus
from modules.documents.models.master_list import MasterListEntry
from modules.documents.models.signer import Signer
from modules.documents.exceptions import ConflictError, DuplicateSignerError, NotFoundError

logger = logging.getLogger(__name__)


class DocumentRepository:
    """
    Persistence of documents, their versions and signer rosters.

    Methods flush but do not commit, except ``promote_to_master_list`` which
    owns its transaction. Callers commit or roll back the unit of work.
    """

    def __init__(self, db_session: Session):
        self.db = db_session

    # --- documents -------------------------------------------------------

    def create_document(self, name: str, project_id: int, creator_id: int) -> Document:
        document = Document(name=name, project_id=project_id, created_by=creator_id)
        self.db.add(document)
        self.db.flush()
        return document

    def get_document(self, document_id: int) -> Document:
        document = self.db.get(Document, document_id)
        if not document:
            raise NotFoundError("Documento no encontrado")
        return document

    # --- versions --------------------------------------------------------

    def lock_document(self, document_id: int) -> Document:
        """Row lock on the document until the transaction ends (no-op on SQLite)."""
        document = (
            self.db.query(Document)
            .filter(Document.id == document_id)
            .with_for_update()
            .first()
        )
        if not document:
            raise NotFoundError("Documento no encontrado")
        return document

    def get_next_version_number(self, document_id: int) -> int:
        current = (
            self.db.query(func.max(DocumentVersion.version_number))
            .filter(DocumentVersion.document_id == document_id)
            .scalar()
        )
        return (current or 0) + 1

    def create_version(self, document_id: int, version_number: int, file_path: str,
                       mime_type: str, change_description: Optional[str],
                       uploader_id: int) -> DocumentVersion:
        version = DocumentVersion(
            document_id=document_id,
            version_number=version_number,
            file_path=file_path,
            mime_type=mime_type,
            change_description=change_description,
            uploaded_by=uploader_id,
            status=VersionStatus.PENDING,
            uploaded_at=datetime.utcnow(),
        )
        self.db.add(version)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"La versión {version_number} del documento {document_id} ya existe"
            ) from e
        return version

    def get_version_info(self, version_id: int) -> DocumentVersion:
        version = self.db.get(DocumentVersion, version_id, populate_existing=True)
        if not version:
            raise NotFoundError("Versión no encontrada")
        return version

    def get_latest_version(self, document_id: int) -> Optional[DocumentVersion]:
        return (
            self.db.query(DocumentVersion)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .first()
        )

    def update_version_file(self, version_id: int, new_path: str, expected_path: Optional[str] = None) -> bool:
        """Point the version at a new file; with ``expected_path`` only if unchanged."""
        query = self.db.query(DocumentVersion).filter(DocumentVersion.id == version_id)
        if expected_path is not None:
            query = query.filter(DocumentVersion.file_path == expected_path)
        updated = query.update({DocumentVersion.file_path: new_path}, synchronize_session=False)
        return updated == 1

    def version_history(self, document_id: int) -> List[DocumentVersion]:
        return (
            self.db.query(DocumentVersion)
            .filter(DocumentVersion.document_id == document_id)
            .order_by(DocumentVersion.version_number.desc())
            .all()
        )

    # --- signers ---------------------------------------------------------

    def assign_signers(self, version_id: int, user_ids: Iterable[int]) -> List[Signer]:
        user_ids = list(user_ids)
        if len(set(user_ids)) != len(user_ids):
            raise DuplicateSignerError("Un firmante aparece más de una vez")

        existing = (
            self.db.query(Signer.user_id)
            .filter(Signer.version_id == version_id, Signer.user_id.in_(user_ids))
            .first()
        )
        if existing:
            raise DuplicateSignerError(f"El usuario {existing[0]} ya es firmante de esta versión")

        signers = [Signer(version_id=version_id, user_id=uid, signed=False, rejected=False) for uid in user_ids]
        self.db.add_all(signers)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateSignerError("Firmantes duplicados para esta versión") from e
        return signers

    def get_signers_for_version(self, version_id: int) -> List[Signer]:
        return (
            self.db.query(Signer)
            .filter(Signer.version_id == version_id)
            .order_by(Signer.id)
            .populate_existing()
            .all()
        )

    def get_signer(self, version_id: int, user_id: int) -> Optional[Signer]:
        return (
            self.db.query(Signer)
            .filter(Signer.version_id == version_id, Signer.user_id == user_id)
            .populate_existing()
            .first()
        )

    def pending_signer_ids(self, version_id: int) -> List[int]:
        rows = (
            self.db.query(Signer.user_id)
            .filter(
                Signer.version_id == version_id,
                Signer.signed.is_(False),
                Signer.rejected.is_(False),
            )
            .order_by(Signer.id)
            .all()
        )
        return [row[0] for row in rows]

    def can_sign(self, version_id: int, user_id: int) -> bool:
        count = (
            self.db.query(func.count(Signer.id))
            .join(DocumentVersion, DocumentVersion.id == Signer.version_id)
            .filter(
                Signer.version_id == version_id,
                Signer.user_id == user_id,
                Signer.signed.is_(False),
                Signer.rejected.is_(False),
                DocumentVersion.status == VersionStatus.PENDING,
            )
            .scalar()
        )
        return count > 0

    def record_signature(self, version_id: int, user_id: int) -> bool:
        """Mark a pending signer as signed. False when no row was in a signable state."""
        updated = (
            self.db.query(Signer)
            .filter(
                Signer.version_id == version_id,
                Signer.user_id == user_id,
                Signer.signed.is_(False),
                Signer.rejected.is_(False),
                Signer.version_id.in_(self._pending_version_ids()),
            )
            .update(
                {Signer.signed: True, Signer.signed_at: datetime.utcnow()},
                synchronize_session=False,
            )
        )
        return updated == 1

    def record_rejection(self, version_id: int, user_id: int, comment: str) -> bool:
        """Reject the version on behalf of a pending signer. False when nothing changed."""
        signer_updated = (
            self.db.query(Signer)
            .filter(
                Signer.version_id == version_id,
                Signer.user_id == user_id,
                Signer.signed.is_(False),
                Signer.rejected.is_(False),
                Signer.version_id.in_(self._pending_version_ids()),
            )
            .update(
                {Signer.rejected: True, Signer.rejection_comment: comment},
                synchronize_session=False,
            )
        )
        if signer_updated != 1:
            return False

        version_updated = (
            self.db.query(DocumentVersion)
            .filter(
                DocumentVersion.id == version_id,
                DocumentVersion.status == VersionStatus.PENDING,
            )
            .update(
                {DocumentVersion.status: VersionStatus.REJECTED, DocumentVersion.rejection_comment: comment},
                synchronize_session=False,
            )
        )
        return version_updated == 1

    def is_version_complete(self, version_id: int) -> bool:
        """Every non-rejected signer has signed, and there is at least one."""
        total, signed = (
            self.db.query(
                func.count(Signer.id),
                func.coalesce(func.sum(case((Signer.signed.is_(True), 1), else_=0)), 0),
            )
            .filter(Signer.version_id == version_id, Signer.rejected.is_(False))
            .one()
        )
        return total > 0 and total == signed

    # --- master list -----------------------------------------------------

    def promote_to_master_list(self, version_id: int) -> bool:
        """
        Mark the version as signed and add it to its project's master list.
        Returns True only for the call that created the entry.
        """
        version = self.get_version_info(version_id)
        project_id = version.document.project_id

        updated = (
            self.db.query(DocumentVersion)
            .filter(
                DocumentVersion.id == version_id,
                DocumentVersion.status.in_([VersionStatus.PENDING, VersionStatus.SIGNED]),
            )
            .update({DocumentVersion.status: VersionStatus.SIGNED}, synchronize_session=False)
        )
        if not updated:
            self.db.rollback()
            logger.warning("Version %s is rejected, not promoting", version_id)
            return False

        # Status and entry commit together, or neither does
        try:
            if self.db.query(MasterListEntry.id).filter(MasterListEntry.version_id == version_id).first():
                self.db.commit()
                return False
            self.db.add(MasterListEntry(version_id=version_id, project_id=project_id, included_at=datetime.utcnow()))
            self.db.commit()
        except IntegrityError:
            # Another request promoted the same version first
            self.db.rollback()
            return False
        except Exception:
            self.db.rollback()
            raise
        return True

    def master_list(self, project_id: int) -> List[MasterListEntry]:
        return (
            self.db.query(MasterListEntry)
            .filter(MasterListEntry.project_id == project_id)
            .order_by(MasterListEntry.included_at.desc(), MasterListEntry.id.desc())
            .all()
        )

    # --- projections -----------------------------------------------------

    def project_documents(self, project_id: int) -> List[Document]:
        return (
            self.db.query(Document)
            .filter(Document.project_id == project_id)
            .order_by(Document.created_at.desc(), Document.id.desc())
            .all()
        )

    @staticmethod
    def _pending_version_ids():
        return select(DocumentVersion.id).where(DocumentVersion.status == VersionStatus.PENDING)
