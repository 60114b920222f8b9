from .user import User, UserRole
from .document import Document, DocumentVersion, VersionStatus
from .signer import Signer
from .master_list import MasterListEntry

__all__ = [
    'User', 'UserRole', 'Document', 'DocumentVersion', 'VersionStatus',
    'Signer', 'MasterListEntry'
]
