import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from config import settings
from modules.documents.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

class AuthService:
    """
    Login de usuarios del proyecto.

    El token lleva el id del usuario en `sub` y su rol en `role`; el rol se
    vuelve a leer de la base en cada petición, el del token es informativo.
    """

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Usuario activo con ese email y contraseña, o None"""
        user = db.query(User).filter(User.email == email).first()
        if not user or not AuthService.verify_password(password, user.password_hash):
            return None
        if not user.is_active:
            logger.info("Inactive user %s tried to log in", user.id)
            return None
        return user

    @staticmethod
    def token_lifetime_seconds() -> int:
        return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @staticmethod
    def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.utcnow() + (expires_delta or timedelta(seconds=AuthService.token_lifetime_seconds()))
        claims = {"sub": str(user.id), "role": user.role.value, "exp": expire}
        return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[int]:
        """Id de usuario contenido en el token, o None si es inválido o expiró"""
        try:
            payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
            return int(payload["sub"])
        except (JWTError, KeyError, ValueError):
            return None

    @staticmethod
    def get_current_user(db: Session, token: str) -> Optional[User]:
        user_id = AuthService.verify_token(token)
        if user_id is None:
            return None
        return db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
