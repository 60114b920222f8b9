from typing import List

from sqlalchemy.orm import Session

from modules.documents.models.user import User, UserRole
from modules.documents.exceptions import NotFoundError
from modules.projects.models.project import Project, ProjectMember
from modules.projects.models.schemas import ProjectMemberInfo

# Roles que pueden firmar y recibir avisos de documentos
SIGNING_ROLES = (UserRole.ADMINISTRATOR, UserRole.CLIENT, UserRole.COLLABORATOR)

class ProjectDirectory:
    """Consulta de proyectos y sus miembros para el flujo de firmas."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_project_members(self, project_id: int) -> List[ProjectMemberInfo]:
        rows = (
            self.db
            .query(User)
            .join(ProjectMember, ProjectMember.user_id == User.id)
            .filter(
                ProjectMember.project_id == project_id,
                User.role.in_(SIGNING_ROLES),
                User.is_active.is_(True),
            )
            .order_by(User.name)
            .all()
        )
        return [
            ProjectMemberInfo(user_id=u.id, name=u.name, email=u.email, role=u.role)
            for u in rows
        ]

    def resolve_project_name(self, project_id: int) -> str:
        project = self.db.get(Project, project_id)
        if not project:
            raise NotFoundError("Proyecto no encontrado")
        return project.name
