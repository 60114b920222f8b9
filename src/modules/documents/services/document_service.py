import io
import json
from dataclasses import dataclass
from typing import List, Optional

from PyPDF2 import PdfReader
from sqlalchemy.orm import Session

from config import settings
from modules.documents.models.document import DocumentVersion
from modules.documents.models.schemas import (
    MasterListItem, ProjectDocumentResponse, SignerResponse, VersionResponse
)
from modules.documents.models.user import User, UserRole
from modules.documents.repositories.document_repository import DocumentRepository
from modules.documents.exceptions import ValidationError

PDF_MIME_TYPE = "application/pdf"


@dataclass
class IncomingFile:
    """Archivo recibido en una petición, ya leído en memoria."""
    filename: str
    content_type: Optional[str]
    contents: bytes


class DocumentService:

    @staticmethod
    def validate_pdf(file: Optional[IncomingFile], max_file_size: int = None) -> None:
        """Valida el PDF subido"""
        max_file_size = max_file_size or settings.MAX_FILE_SIZE

        if file is None or not file.contents:
            raise ValidationError("No se proporcionó archivo")

        # Validar MIME type
        if file.content_type != PDF_MIME_TYPE:
            raise ValidationError("El archivo debe ser un PDF")

        # Validar extensión
        if not (file.filename or "").lower().endswith(".pdf"):
            raise ValidationError("La extensión debe ser .pdf")

        # Validar tamaño
        if len(file.contents) > max_file_size:
            raise ValidationError(f"El tamaño máximo es {max_file_size // (1024*1024)} MB")

        # Validar integridad del PDF
        try:
            reader = PdfReader(io.BytesIO(file.contents))
            pages = len(reader.pages)
        except Exception:
            raise ValidationError("PDF inválido o dañado")
        if pages == 0:
            raise ValidationError("PDF inválido o dañado")

    @staticmethod
    def validate_signature_image(file: Optional[IncomingFile], max_file_size: int = None) -> None:
        """Valida la imagen de firma; su decodificación la comprueba el motor de estampado."""
        max_file_size = max_file_size or settings.MAX_FILE_SIZE

        if file is None or not file.contents:
            raise ValidationError("No se proporcionó firma")
        if file.content_type and not file.content_type.startswith("image/"):
            raise ValidationError("La firma debe ser una imagen")
        if len(file.contents) > max_file_size:
            raise ValidationError(f"El tamaño máximo es {max_file_size // (1024*1024)} MB")

    @staticmethod
    def parse_signer_ids(raw: Optional[str]) -> List[int]:
        """
        Convierte el campo de formulario de firmantes (lista JSON, p.ej. "[3, 4]")
        en una lista de ids. Vacío o ausente devuelve [].
        """
        if raw is None or not raw.strip():
            return []
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            raise ValidationError("La lista de firmantes no es válida")
        if not isinstance(value, list):
            raise ValidationError("La lista de firmantes no es válida")
        try:
            return [int(v) for v in value]
        except (TypeError, ValueError):
            raise ValidationError("Los firmantes deben ser ids de usuario")

    # --- read projections ------------------------------------------------

    @staticmethod
    def to_version_response(version: DocumentVersion) -> VersionResponse:
        signers = version.signers
        return VersionResponse(
            id=version.id,
            document_id=version.document_id,
            version_number=version.version_number,
            file_path=version.file_path,
            mime_type=version.mime_type,
            status=version.status,
            change_description=version.change_description,
            rejection_comment=version.rejection_comment,
            uploaded_by=version.uploaded_by,
            uploader_name=version.uploader.name,
            uploaded_at=version.uploaded_at,
            total_signers=len(signers),
            signed_count=sum(1 for s in signers if s.signed),
        )

    @staticmethod
    def get_version_history(session: Session, document_id: int) -> List[VersionResponse]:
        repo = DocumentRepository(session)
        repo.get_document(document_id)
        return [DocumentService.to_version_response(v) for v in repo.version_history(document_id)]

    @staticmethod
    def get_signer_roster(session: Session, version_id: int) -> List[SignerResponse]:
        repo = DocumentRepository(session)
        repo.get_version_info(version_id)
        signers = sorted(repo.get_signers_for_version(version_id), key=lambda s: s.user.name)
        return [
            SignerResponse(
                user_id=s.user_id,
                name=s.user.name,
                email=s.user.email,
                signed=s.signed,
                signed_at=s.signed_at,
                rejected=s.rejected,
                pending=s.is_pending,
                rejection_comment=s.rejection_comment,
            )
            for s in signers
        ]

    @staticmethod
    def get_master_list(session: Session, project_id: int) -> List[MasterListItem]:
        items = []
        for entry in DocumentRepository(session).master_list(project_id):
            version = entry.version
            items.append(MasterListItem(
                document_id=version.document_id,
                document_name=version.document.name,
                version_id=version.id,
                version_number=version.version_number,
                file_path=version.file_path,
                uploaded_at=version.uploaded_at,
                uploader_name=version.uploader.name,
                included_at=entry.included_at,
            ))
        return items

    @staticmethod
    def get_documents_by_project(session: Session, project_id: int, user: User) -> List[ProjectDocumentResponse]:
        """
        Documentos del proyecto con su última versión.
        Los colaboradores solo ven lo que subieron o lo que deben firmar.
        """
        repo = DocumentRepository(session)
        result = []
        for document in repo.project_documents(project_id):
            latest = repo.get_latest_version(document.id)
            if latest is None:
                continue
            mine = next((s for s in latest.signers if s.user_id == user.id), None)

            if user.role == UserRole.COLLABORATOR and latest.uploaded_by != user.id and mine is None:
                continue

            result.append(ProjectDocumentResponse(
                document_id=document.id,
                name=document.name,
                latest_version=DocumentService.to_version_response(latest),
                can_sign=repo.can_sign(latest.id, user.id),
                signed=bool(mine and mine.signed),
                rejected=bool(mine and mine.rejected),
            ))
        return result
