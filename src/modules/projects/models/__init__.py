from .project import Project, ProjectMember

__all__ = ['Project', 'ProjectMember']
