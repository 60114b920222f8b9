# create_tables.py
import logging

from database import engine, Base
# Importa todos los modelos para que se registren con Base
from modules.documents.models import User, Document, DocumentVersion, Signer, MasterListEntry  # noqa: F401
from modules.projects.models import Project, ProjectMember  # noqa: F401
from modules.notifications.models import Notification  # noqa: F401

logger = logging.getLogger(__name__)

def crear_tablas(bind=None):
    """Crea todas las tablas en la base de datos"""
    logger.info("Tables to create: %s", list(Base.metadata.tables.keys()))
    Base.metadata.create_all(bind=bind or engine)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    crear_tablas()
