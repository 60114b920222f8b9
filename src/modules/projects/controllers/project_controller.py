# modules/projects/controllers/project_controller.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from modules.auth.dependencies import require_permission
from modules.documents.models.user import User
from modules.projects.models.schemas import ProjectMemberInfo
from modules.projects.services.project_directory import ProjectDirectory

router = APIRouter()


@router.get(
    "/{project_id}/users",
    response_model=List[ProjectMemberInfo],
    summary="Usuarios del proyecto que pueden ser firmantes"
)
def list_project_users(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("view")),
):
    directory = ProjectDirectory(db)
    # 404 si el proyecto no existe
    directory.resolve_project_name(project_id)
    return directory.get_project_members(project_id)
