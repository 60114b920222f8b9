from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from modules.documents.models.document import VersionStatus

class SignerResponse(BaseModel):
    user_id: int
    name: str
    email: str
    signed: bool
    signed_at: Optional[datetime] = None
    rejected: bool
    pending: bool
    rejection_comment: Optional[str] = None

class VersionResponse(BaseModel):
    id: int
    document_id: int
    version_number: int
    file_path: str
    mime_type: str
    status: VersionStatus
    change_description: Optional[str] = None
    rejection_comment: Optional[str] = None
    uploaded_by: int
    uploader_name: str
    uploaded_at: datetime
    total_signers: int
    signed_count: int

class ProjectDocumentResponse(BaseModel):
    document_id: int
    name: str
    latest_version: VersionResponse
    can_sign: bool
    signed: bool
    rejected: bool

class MasterListItem(BaseModel):
    document_id: int
    document_name: str
    version_id: int
    version_number: int
    file_path: str
    uploaded_at: datetime
    uploader_name: str
    included_at: datetime

class UploadResponse(BaseModel):
    message: str
    document_id: int
    version_id: int

class SignResponse(BaseModel):
    message: str
    version_id: int
    completed: bool

class RejectRequest(BaseModel):
    comment: str = Field(..., min_length=1, max_length=1024)
