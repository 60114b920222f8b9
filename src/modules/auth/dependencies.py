import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from database import get_db
from modules.auth.services.auth_service import AuthService
from modules.documents.exceptions import PermissionDeniedError
from modules.documents.models.user import User
from modules.documents.services.permission import can_perform_action

logger = logging.getLogger(__name__)

security = HTTPBearer()

def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security), db: Session = Depends(get_db)) -> User:
    """Usuario autenticado a partir del token Bearer"""
    user = AuthService.get_current_user(db, credentials.credentials)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido o expirado",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user

def require_permission(action: str):
    """Dependencia que exige que el rol del usuario permita `action` (upload, sign, reject, view)."""
    def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not can_perform_action(current_user.role, action):
            logger.info("User %s (%s) denied '%s'", current_user.id, current_user.role.value, action)
            raise PermissionDeniedError(
                f"El rol {current_user.role.value} no puede realizar la acción '{action}'"
            )
        return current_user
    return dependency
