# src/common/storage/__init__.py
"""Object storage for uploaded files."""

from .storage_service import StorageService, StoredFile

__all__ = ["StorageService", "StoredFile"]
