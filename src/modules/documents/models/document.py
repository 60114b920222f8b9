from sqlalchemy import Column, Integer, String, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum
from database import Base

class VersionStatus(PyEnum):
    PENDING = "PENDING"
    SIGNED = "SIGNED"
    REJECTED = "REJECTED"

class Document(Base):
    __tablename__ = 'documents'

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    created_by = Column(Integer, ForeignKey('users.id'), nullable=False)

    project = relationship("Project", back_populates="documents")
    creator = relationship("User", back_populates="documents")

    # Versions are never moved between documents
    versions = relationship(
        "DocumentVersion",
        back_populates="document",
        order_by="DocumentVersion.version_number",
        cascade="all, delete-orphan"
    )

class DocumentVersion(Base):
    __tablename__ = 'document_versions'
    __table_args__ = (
        UniqueConstraint('document_id', 'version_number', name='uq_document_version_number'),
    )

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, ForeignKey('documents.id'), nullable=False)
    version_number = Column(Integer, nullable=False)
    # Reassigned every time a signature is stamped onto the file
    file_path = Column(String, nullable=False)
    mime_type = Column(String, nullable=False, default="application/pdf")
    status = Column(Enum(VersionStatus), nullable=False, default=VersionStatus.PENDING)
    change_description = Column(String, nullable=True)
    rejection_comment = Column(String, nullable=True)

    uploaded_by = Column(Integer, ForeignKey('users.id'), nullable=False)
    uploaded_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    document = relationship("Document", back_populates="versions")
    uploader = relationship("User", back_populates="uploaded_versions")
    signers = relationship("Signer", back_populates="version", cascade="all, delete-orphan")
