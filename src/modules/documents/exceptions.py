class WorkflowError(Exception):
    """Base error of the document signing workflow."""
    status_code = 500

    def __init__(self, message: str = "Error interno del servidor"):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    status_code = 400


class NotFoundError(WorkflowError):
    status_code = 404


class PermissionDeniedError(WorkflowError):
    status_code = 403


class ConflictError(WorkflowError):
    status_code = 409


class DuplicateSignerError(ConflictError):
    pass


class StorageError(WorkflowError):
    status_code = 500


class StampingError(WorkflowError):
    status_code = 500


class InvalidPDFError(StampingError):
    pass


class InvalidImageError(StampingError):
    status_code = 400
