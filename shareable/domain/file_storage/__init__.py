"""
File Storage Domain

Contract for the permanent store of published blobs.
"""

from .storage_repository import IFileStorageRepository

__all__ = ["IFileStorageRepository"]
