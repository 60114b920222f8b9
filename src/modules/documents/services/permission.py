from sqlalchemy.orm import Session

from modules.documents.models.user import UserRole
from modules.documents.repositories.document_repository import DocumentRepository
from modules.documents.exceptions import PermissionDeniedError

ROLE_PERMISSIONS = {
    UserRole.SUPERADMIN: ["upload", "sign", "reject", "view"],
    UserRole.ADMINISTRATOR: ["upload", "sign", "reject", "view"],
    UserRole.COLLABORATOR: ["upload", "sign", "reject", "view"],
    UserRole.CLIENT: ["sign", "reject", "view"],
}

def can_perform_action(user_role: UserRole, action: str) -> bool:
    return action in ROLE_PERMISSIONS.get(user_role, [])

def can_sign(session: Session, version_id: int, user_id: int) -> bool:
    """
    True while the user is a pending signer of a version that is still pending.
    Once any signer rejects, nobody else can sign or reject that version.
    """
    return DocumentRepository(session).can_sign(version_id, user_id)

def require_signer(session: Session, version_id: int, user_id: int, action: str = "firmar") -> None:
    if not can_sign(session, version_id, user_id):
        raise PermissionDeniedError(f"No tiene permisos para {action} este documento")
