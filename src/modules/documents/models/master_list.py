from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

class MasterListEntry(Base):
    """Versión totalmente firmada incluida en la lista maestra del proyecto."""
    __tablename__ = 'master_list_entries'

    id = Column(Integer, primary_key=True)
    version_id = Column(Integer, ForeignKey('document_versions.id'), nullable=False, unique=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    included_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    version = relationship("DocumentVersion")
