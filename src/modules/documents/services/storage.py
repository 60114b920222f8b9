import logging
import os
import re
import uuid
from pathlib import Path

from config import settings
from modules.documents.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_\-.]")


def sanitize_file_name(name: str) -> str:
    """Replace unsafe characters and cap the length at 100."""
    return _UNSAFE_CHARS.sub("_", name)[:100]


class LocalFileStorage:
    """
    Stores PDFs under ``root/<project_id>_<project_name>/``.

    Returned paths are opaque to callers: ``<url_prefix>/<folder>/<file>``.
    """

    def __init__(self, root: str = None, url_prefix: str = None):
        self.root = Path(root or settings.UPLOAD_DIR).resolve()
        self.url_prefix = (url_prefix or settings.FILES_URL_PREFIX).rstrip("/")

    def save_file(self, contents: bytes, project_id: int, project_name: str, document_name: str) -> str:
        return self._write(contents, project_id, project_name, document_name, prefix="")

    def save_signed_file(self, contents: bytes, project_id: int, project_name: str, document_name: str) -> str:
        return self._write(contents, project_id, project_name, document_name, prefix="signed_")

    def read_file(self, stored_path: str) -> bytes:
        path = self.resolve(stored_path)
        if not path.is_file():
            raise NotFoundError("Archivo no encontrado")
        try:
            return path.read_bytes()
        except OSError as e:
            logger.error("Could not read %s: %s", path, e)
            raise StorageError("No se pudo leer el archivo") from e

    def discard(self, stored_path: str) -> None:
        """Remove a file that never got referenced by a version."""
        try:
            path = self.resolve(stored_path)
            if path.is_file():
                os.remove(path)
        except (OSError, NotFoundError) as e:
            logger.warning("Could not discard %s: %s", stored_path, e)

    def resolve(self, stored_path: str) -> Path:
        """Map a stored path (with or without the URL prefix) to a file under root."""
        relative = stored_path
        if relative.startswith(self.url_prefix + "/"):
            relative = relative[len(self.url_prefix) + 1:]
        full = (self.root / relative.lstrip("/")).resolve()
        if full != self.root and self.root not in full.parents:
            raise NotFoundError("Archivo no encontrado")
        return full

    def _write(self, contents: bytes, project_id: int, project_name: str, document_name: str, prefix: str) -> str:
        folder = sanitize_file_name(f"{project_id}_{project_name}")
        filename = f"{prefix}{uuid.uuid4()}_{sanitize_file_name(document_name)}.pdf"
        folder_path = self.root / folder
        try:
            os.makedirs(folder_path, exist_ok=True)
            with open(folder_path / filename, "wb") as f:
                f.write(contents)
        except OSError as e:
            logger.error("Could not write %s/%s: %s", folder_path, filename, e)
            raise StorageError("No se pudo guardar el archivo") from e
        return f"{self.url_prefix}/{folder}/{filename}"


def get_storage() -> LocalFileStorage:
    return LocalFileStorage()
