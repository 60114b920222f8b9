from .project_directory import ProjectDirectory, SIGNING_ROLES

__all__ = ['ProjectDirectory', 'SIGNING_ROLES']
