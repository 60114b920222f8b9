from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.dependencies import require_permission
from modules.documents.dependencies import get_file_storage, get_workflow
from modules.documents.models.schemas import MasterListItem, ProjectDocumentResponse, UploadResponse, VersionResponse
from modules.documents.models.user import User
from modules.documents.services.document_service import DocumentService, IncomingFile
from modules.documents.exceptions import NotFoundError
from modules.documents.services.signature_workflow import SignatureWorkflowService
from modules.documents.services.storage import LocalFileStorage
from modules.projects.services.project_directory import ProjectDirectory

router = APIRouter(
    tags=["documents"]
)

def read_upload(file: Optional[UploadFile]) -> Optional[IncomingFile]:
    if file is None:
        return None
    return IncomingFile(filename=file.filename or "", content_type=file.content_type, contents=file.file.read())

@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_document(
    document_name: str = Form(...),
    project_id: int = Form(...),
    signer_ids: Optional[str] = Form(None),
    change_description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_permission("upload")),
    workflow: SignatureWorkflowService = Depends(get_workflow),
):
    """Sube un documento nuevo (versión 1) y asigna sus firmantes."""
    document_id, version_id = workflow.upload_document(
        current_user.id,
        read_upload(file),
        document_name,
        project_id,
        DocumentService.parse_signer_ids(signer_ids),
        change_description,
    )
    return UploadResponse(message="Documento subido exitosamente", document_id=document_id, version_id=version_id)

@router.post("/upload-version", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
def upload_new_version(
    document_id: int = Form(...),
    signer_ids: Optional[str] = Form(None),
    change_description: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_permission("upload")),
    workflow: SignatureWorkflowService = Depends(get_workflow),
):
    """Sube una nueva versión de un documento existente."""
    version_id = workflow.upload_new_version(
        current_user.id,
        read_upload(file),
        document_id,
        DocumentService.parse_signer_ids(signer_ids),
        change_description,
    )
    return UploadResponse(message="Nueva versión subida exitosamente", document_id=document_id, version_id=version_id)

@router.get("/projects/{project_id}", response_model=List[ProjectDocumentResponse])
def list_project_documents(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view")),
):
    ProjectDirectory(db).resolve_project_name(project_id)
    return DocumentService.get_documents_by_project(db, project_id, current_user)

@router.get("/projects/{project_id}/master-list", response_model=List[MasterListItem])
def get_master_list(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view")),
):
    ProjectDirectory(db).resolve_project_name(project_id)
    return DocumentService.get_master_list(db, project_id)

@router.get("/{document_id}/versions", response_model=List[VersionResponse])
def get_version_history(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view")),
):
    return DocumentService.get_version_history(db, document_id)

@router.get("/files/{file_path:path}")
def download_file(
    file_path: str,
    storage: LocalFileStorage = Depends(get_file_storage),
    current_user: User = Depends(require_permission("view")),
):
    """Devuelve el PDF almacenado (firmado o no)."""
    path = storage.resolve(file_path)
    if not path.is_file():
        raise NotFoundError("Archivo no encontrado")
    return FileResponse(path, media_type="application/pdf", filename=path.name)
