from pathlib import Path

from app.database.models import DocumentRecord
from app.processor.exceptions import UnsupportedStorageDiskError


def document_file_path(files_root: Path, storage_path: str) -> Path:
    """Build path to document file: {files_root}/{storage_path}"""
    return files_root / storage_path.lstrip("/")


class FileLoader:
    """Resolves filesystem path for a document and reads its bytes."""

    FILES_ROOT = Path("/app/files")

    def __init__(self, files_root: Path | None = None) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT

    def load(self, document: DocumentRecord) -> bytes:
        """Read document bytes from disk.

        Raises:
            FileNotFoundError: if the file does not exist at resolved path.
            UnsupportedStorageDiskError: if storage_disk is not 'local'.
            ValueError: if storage_path points outside the files root.
        """
        if document.storage_disk != "local":
            raise UnsupportedStorageDiskError(
                f"storage_disk '{document.storage_disk}' is not supported"
            )
        path = self._resolve_path(document)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")
        return path.read_bytes()

    def _resolve_path(self, document: DocumentRecord) -> Path:
        root = self._files_root.resolve()
        path = document_file_path(root, document.storage_path).resolve()
        if not path.is_relative_to(root):
            raise ValueError(f"storage_path escapes files root: {document.storage_path}")
        return path
