"""
Local File Storage Repository Implementation

Concrete implementation of IFileStorageRepository for the local filesystem.
Blobs live below a base directory and are served by an external web server
under a base URL.
"""

import logging
import os
from pathlib import Path
from typing import List
from urllib.parse import quote

from ..domain.errors import BlobDeletionError
from ..domain.file_storage.storage_repository import IFileStorageRepository

logger = logging.getLogger(__name__)


class LocalFileStorageRepository(IFileStorageRepository):
    """
    Local filesystem implementation of IFileStorageRepository.

    Attributes:
        base_path: Directory holding the published files
        base_url: Public URL the directory is served under, ending with "/"
    """

    def __init__(self, base_path: str, base_url: str = "/"):
        """
        Initialize the local file storage repository.

        Args:
            base_path: Directory holding the published files
            base_url: Public URL of that directory
        """
        self.base_path = Path(base_path)
        self.base_url = base_url.rstrip("/") + "/"

    def path(self, filename: str = "") -> str:
        if not filename:
            return str(self.base_path)
        return str(self.base_path / filename)

    def url(self, filename: str = "") -> str:
        return self.base_url + quote(filename)

    def exists(self, filename: str) -> bool:
        try:
            if not filename or not filename.strip():
                return False
            return (self.base_path / filename).is_file()
        except (OSError, ValueError):
            return False

    def delete(self, filename: str) -> bool:
        """
        Delete a file from storage.

        Idempotent: deleting a non-existent file returns False without
        error. An emptied per-item subdirectory is removed as well.
        """
        full_path = self.base_path / filename
        if not full_path.is_file():
            return False

        try:
            full_path.unlink()
        except OSError as e:
            raise BlobDeletionError(
                f'Could not delete file "{full_path}"', original_error=e
            ) from e

        parent = full_path.parent
        if parent != self.base_path and not any(parent.iterdir()):
            parent.rmdir()
            logger.debug(f"Removed empty directory {parent}")

        return True

    def entries(self) -> List[str]:
        return sorted(
            entry.name
            for entry in os.scandir(self.base_path)
            if not entry.name.startswith(".")
        )

    def move_in(self, source: str, filename: str) -> None:
        os.rename(source, self.base_path / filename)
