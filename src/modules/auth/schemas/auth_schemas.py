from datetime import datetime
from pydantic import BaseModel, EmailStr, Field
from modules.documents.models.user import UserRole

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: int
    user_name: str
    user_role: UserRole

class UserResponse(BaseModel):
    """Datos públicos del usuario autenticado"""
    id: int
    name: str
    email: EmailStr
    role: UserRole
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
