from pydantic import BaseModel

from modules.documents.models.user import UserRole

class ProjectMemberInfo(BaseModel):
    user_id: int
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}
