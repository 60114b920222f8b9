from .document_service import DocumentService, IncomingFile
from .signature_workflow import SignatureWorkflowService, SignOutcome
from .stamping import PdfStamper, SignatureBox, signature_box
from .storage import LocalFileStorage

__all__ = [
    'DocumentService', 'IncomingFile', 'SignatureWorkflowService', 'SignOutcome',
    'PdfStamper', 'SignatureBox', 'signature_box', 'LocalFileStorage'
]
