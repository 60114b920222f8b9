# src/modules/documents/controllers/signature_controller.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.dependencies import require_permission
from modules.documents.controllers.document_controller import read_upload
from modules.documents.dependencies import get_workflow
from modules.documents.models.schemas import RejectRequest, SignResponse, SignerResponse
from modules.documents.models.user import User
from modules.documents.services.document_service import DocumentService
from modules.documents.services.signature_workflow import SignatureWorkflowService

router = APIRouter(
    tags=["documents"]
)

@router.post("/versions/{version_id}/sign", response_model=SignResponse)
def sign_version(
    version_id: int,
    x_ratio: Optional[float] = Form(None),
    y_ratio: Optional[float] = Form(None),
    signature: Optional[UploadFile] = File(None),
    current_user: User = Depends(require_permission("sign")),
    workflow: SignatureWorkflowService = Depends(get_workflow),
):
    """
    Estampa la firma del usuario en la primera página del PDF.
    x_ratio / y_ratio: centro de la firma como fracción del ancho/alto de la
    página, medido desde la esquina superior izquierda.
    """
    image = read_upload(signature)
    DocumentService.validate_signature_image(image)
    outcome = workflow.sign_version(current_user.id, version_id, image.contents, x_ratio, y_ratio)
    return SignResponse(
        message="Documento firmado exitosamente",
        version_id=outcome.version_id,
        completed=outcome.completed,
    )

@router.post("/versions/{version_id}/reject")
def reject_version(
    version_id: int,
    payload: RejectRequest,
    current_user: User = Depends(require_permission("reject")),
    workflow: SignatureWorkflowService = Depends(get_workflow),
):
    workflow.reject_version(current_user.id, version_id, payload.comment)
    return {"message": "Documento rechazado", "version_id": version_id}

@router.get("/versions/{version_id}/signers", response_model=List[SignerResponse])
def list_signers(
    version_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view")),
):
    return DocumentService.get_signer_roster(db, version_id)
