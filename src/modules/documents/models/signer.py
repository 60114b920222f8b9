# src/modules/documents/models/signer.py

from sqlalchemy import Boolean, Column, Integer, ForeignKey, DateTime, String, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base

class Signer(Base):
    """
    Firmante requerido de una versión.

    Estados: pendiente (signed=False, rejected=False), firmado (signed=True)
    o rechazado (rejected=True).
    """
    __tablename__ = "signers"
    __table_args__ = (
        UniqueConstraint("version_id", "user_id", name="uq_signer_version_user"),
    )

    id               = Column(Integer, primary_key=True)
    version_id       = Column(Integer, ForeignKey("document_versions.id"), nullable=False)
    user_id          = Column(Integer, ForeignKey("users.id"),             nullable=False)
    signed           = Column(Boolean, default=False, nullable=False)
    signed_at        = Column(DateTime, nullable=True)
    rejected         = Column(Boolean, default=False, nullable=False)
    rejection_comment = Column(String, nullable=True)

    version = relationship("DocumentVersion", back_populates="signers")
    user    = relationship("User")

    @property
    def is_pending(self) -> bool:
        return not self.signed and not self.rejected
