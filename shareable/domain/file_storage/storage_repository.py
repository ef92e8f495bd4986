"""
File Storage Repository Interface

Abstract interface for the permanent store holding published blobs.
Keeps the item domain independent of where and how blobs are kept.
"""

from abc import ABC, abstractmethod
from typing import List


class IFileStorageRepository(ABC):
    """
    Interface for blob storage operations.

    Contract Guarantees:
    - File names are relative to the storage root and may contain one
      subdirectory level (``"<subdir>/<name>"``)
    - delete() is idempotent with respect to missing files
    - exists() never raises for invalid names
    """

    @abstractmethod
    def path(self, filename: str = "") -> str:
        """
        Return the absolute path of a file, or of the root if no name is given.
        """
        pass  # pragma: no cover

    @abstractmethod
    def url(self, filename: str = "") -> str:
        """
        Return the public download URL of a file.
        """
        pass  # pragma: no cover

    @abstractmethod
    def exists(self, filename: str) -> bool:
        """
        Check if a file exists in the store.

        Returns:
            True if the file exists, False otherwise (also for invalid names)
        """
        pass  # pragma: no cover

    @abstractmethod
    def delete(self, filename: str) -> bool:
        """
        Delete a file from the store.

        Returns:
            True if a file was removed, False if it did not exist

        Raises:
            BlobDeletionError: If an existing file could not be removed
        """
        pass  # pragma: no cover

    @abstractmethod
    def entries(self) -> List[str]:
        """
        List the top-level entries of the store, ignoring dotfiles.
        """
        pass  # pragma: no cover

    @abstractmethod
    def move_in(self, source: str, filename: str) -> None:
        """
        Move a file from an absolute source path into the store.

        Raises:
            OSError: If the file could not be moved
        """
        pass  # pragma: no cover
